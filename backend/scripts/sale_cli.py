# backend/scripts/sale_cli.py
# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2025 Joltkin LLC.
#
# Purpose
# -------
# Operator CLI for the badge sale engine. Every subcommand loads the ledger
# from the JSON state file, performs one call, saves the ledger back and
# prints a JSON summary (result + emitted notifications) for piping to `jq`.
#
# Usage
# -----
#   python backend/scripts/sale_cli.py --sender <ADMIN> init
#   python backend/scripts/sale_cli.py create-event --kind plain-native \
#       --max-total 100 --max-per-wallet 2 --price 1000000
#   python backend/scripts/sale_cli.py activate --event 0
#   python backend/scripts/sale_cli.py toggle --sale on
#   python backend/scripts/sale_cli.py fund --addr <BUYER> --amount 5000000
#   python backend/scripts/sale_cli.py --sender <BUYER> buy --kind plain-native \
#       --event 0 --count 2 --value 2000000
#
# Conventions
# -----------
# * Native amounts are in **microAlgos** (µAlgos); token amounts in base units.
# * The caller is `--sender`, or the address derived from ADMIN_MNEMONIC
#   (admin commands) / BUYER_MNEMONIC (buyer commands) in `.env`.
# * The state file defaults to SALE_STATE_PATH (sale_state.json).

from __future__ import annotations

import argparse
import json
import logging
import pathlib
import sys
from collections.abc import Callable
from typing import Any

# Allow `python backend/scripts/sale_cli.py` from a checkout without install.
REPO_ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from backend.contracts import merkle  # noqa: E402
from backend.contracts.errors import SaleError  # noqa: E402
from backend.contracts.runtime import Call  # noqa: E402
from backend.contracts.sale_engine import SaleKind, to_kind  # noqa: E402
from backend.core import state_store  # noqa: E402
from backend.core.config import addr_from_mn, settings  # noqa: E402
from backend.core.state_store import Deployment  # noqa: E402

log = logging.getLogger("sale_cli")

ADMIN_COMMANDS = {
    "init",
    "create-event",
    "set-event",
    "activate",
    "deactivate",
    "toggle",
    "merkle-root",
    "whitelist",
    "mint-token",
    "withdraw",
}

# These never act on behalf of an account.
SENDERLESS_COMMANDS = {"fund", "status"}

KIND_CHOICES = [k.name.lower().replace("_", "-") for k in SaleKind]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _on_off(value: str) -> bool:
    """argparse type: on/off, true/false, 1/0."""
    v = value.strip().lower()
    if v in {"on", "true", "1", "yes"}:
        return True
    if v in {"off", "false", "0", "no"}:
        return False
    raise argparse.ArgumentTypeError("expected on/off")


def _non_negative_int(value: str) -> int:
    try:
        iv = int(value, 10)
    except ValueError as e:
        raise argparse.ArgumentTypeError("must be an integer") from e
    if iv < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return iv


def resolve_sender(args: argparse.Namespace) -> str:
    """Pick the calling address: --sender, else the role mnemonic from .env."""
    if args.sender:
        return args.sender
    env_mn = settings.ADMIN_MNEMONIC if args.cmd in ADMIN_COMMANDS else settings.BUYER_MNEMONIC
    addr = addr_from_mn(env_mn)
    if not addr and args.cmd in SENDERLESS_COMMANDS:
        return ""
    if not addr:
        role = "ADMIN_MNEMONIC" if args.cmd in ADMIN_COMMANDS else "BUYER_MNEMONIC"
        raise SystemExit(f"Pass --sender or set {role} in .env")
    return addr


def _event_view(dep: Deployment, event_id: int) -> dict[str, Any]:
    event = dep.engine.sale_event(event_id)
    return {
        "id": event_id,
        "kind": event.kind.name,
        **event.to_dict(),
        "active": dep.engine.is_active(event_id),
    }


# ---------------------------------------------------------------------------
# Subcommand handlers: (deployment, args, sender) -> JSON-able result
# ---------------------------------------------------------------------------


def cmd_create_event(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    event_id = dep.engine.create_sale_event(
        Call(sender), args.kind, args.max_total, args.max_per_wallet, args.price
    )
    return _event_view(dep, event_id)


def cmd_set_event(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    call, engine = Call(sender), dep.engine
    if args.max_total is not None:
        engine.set_max_total_units(call, args.event, args.max_total)
    if args.max_per_wallet is not None:
        engine.set_max_units_per_wallet(call, args.event, args.max_per_wallet)
    if args.price is not None:
        engine.set_unit_price(call, args.event, args.price)
    return _event_view(dep, args.event)


def cmd_activate(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    dep.engine.activate(Call(sender), args.event)
    return {"active": dep.engine.active_events}


def cmd_deactivate(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    position = args.position
    if position is None:
        position = dep.engine.position_of(args.event)
        if position is None:
            raise SystemExit(f"Event {args.event} is not in the active set")
    dep.engine.deactivate_at(Call(sender), position)
    return {"position": position, "active": dep.engine.active_events}


def cmd_toggle(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    if args.sale is not None:
        dep.engine.set_sale_active(Call(sender), args.sale)
    if args.bot_block is not None:
        dep.engine.set_bot_block(Call(sender), args.bot_block)
    s = dep.engine.storage
    return {"sale_active": s.sale_active, "bot_block": s.bot_block}


def cmd_merkle_root(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    dep.engine.set_merkle_root(Call(sender), merkle.parse_root(args.root))
    return {"merkle_root": dep.engine.storage.merkle_root.hex()}


def cmd_whitelist(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    counts = args.count if len(args.count) > 1 else args.count * len(args.addr)
    dep.engine.add_whitelist_batch(Call(sender), args.addr, args.event, counts)
    return {a: dep.engine.whitelist_allowance(a, args.event) for a in args.addr}


def cmd_fund(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    dep.ledger.fund(args.addr, args.amount)
    return {"address": args.addr, "balance": dep.ledger.balance_of(args.addr)}


def _token(dep: Deployment):
    if dep.token is None:
        raise SystemExit("No payment token deployed (state was created with --no-token)")
    return dep.token


def cmd_mint_token(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    token = _token(dep)
    token.mint(Call(sender), args.to, args.amount)
    return {"address": args.to, "balance": token.balance_of(args.to)}


def cmd_approve(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    token = _token(dep)
    token.approve(Call(sender), dep.engine.address, args.amount)
    return {"owner": sender, "allowance": token.allowance(sender, dep.engine.address)}


def _purchase_call(args: argparse.Namespace, sender: str) -> Call:
    return Call(sender=sender, origin=args.origin, value=args.value)


def cmd_buy(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    call = _purchase_call(args, sender)
    if to_kind(args.kind) in (SaleKind.MERKLE_NATIVE, SaleKind.MERKLE_TOKEN):
        proof = merkle.parse_proof(args.proof)
        last = dep.engine.purchase_with_proof(call, args.kind, args.event, args.count, proof)
    else:
        last = dep.engine.purchase(call, args.kind, args.event, args.count)
    return {
        "buyer": sender,
        "last_token_id": last,
        "purchased": dep.engine.purchased(sender, args.event),
        "event": _event_view(dep, args.event),
    }


def cmd_preflight(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    problems = dep.engine.preflight(
        _purchase_call(args, sender),
        args.kind,
        args.event,
        args.count,
        merkle.parse_proof(args.proof),
    )
    return {
        "eligible": not problems,
        "problems": [{"reason": p.reason, "detail": p.detail} for p in problems],
    }


def cmd_status(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    engine, s = dep.engine, dep.engine.storage
    out: dict[str, Any] = {
        "engine": {"app_id": engine.app_id, "address": engine.address},
        "issuer": {
            "app_id": dep.issuer.app_id,
            "address": dep.issuer.address,
            "total_minted": dep.issuer.total_minted,
        },
        "token": (
            {"app_id": dep.token.app_id, "address": dep.token.address}
            if dep.token
            else None
        ),
        "sale_active": s.sale_active,
        "bot_block": s.bot_block,
        "merkle_root": s.merkle_root.hex(),
        "active": engine.active_events,
        "events": [_event_view(dep, i) for i in range(engine.event_count)],
        "engine_balance": dep.ledger.balance_of(engine.address),
    }
    if args.addr:
        out["account"] = {
            "address": args.addr,
            "balance": dep.ledger.balance_of(args.addr),
            "badges": dep.issuer.balance_of(args.addr),
            "purchased": {
                i: engine.purchased(args.addr, i) for i in range(engine.event_count)
            },
            "whitelist": {
                i: engine.whitelist_allowance(args.addr, i)
                for i in range(engine.event_count)
            },
        }
    return out


def cmd_withdraw(dep: Deployment, args: argparse.Namespace, sender: str) -> Any:
    if args.token:
        amount = dep.engine.withdraw_token(Call(sender), args.to)
    else:
        amount = dep.engine.withdraw_native(Call(sender), args.to)
    return {"to": args.to, "amount": amount, "token": bool(args.token)}


HANDLERS: dict[str, Callable[[Deployment, argparse.Namespace, str], Any]] = {
    "create-event": cmd_create_event,
    "set-event": cmd_set_event,
    "activate": cmd_activate,
    "deactivate": cmd_deactivate,
    "toggle": cmd_toggle,
    "merkle-root": cmd_merkle_root,
    "whitelist": cmd_whitelist,
    "fund": cmd_fund,
    "mint-token": cmd_mint_token,
    "approve": cmd_approve,
    "buy": cmd_buy,
    "preflight": cmd_preflight,
    "status": cmd_status,
    "withdraw": cmd_withdraw,
}


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="sale_cli.py",
        description="Badge sale engine operator CLI (local ledger simulation).",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    ap.add_argument("--state", default=settings.SALE_STATE_PATH, help="Ledger state file")
    ap.add_argument("--sender", default=None, help="Calling address (overrides .env mnemonics)")
    sub = ap.add_subparsers(dest="cmd", required=True)

    init = sub.add_parser("init", help="Deploy issuer, payment token and engine")
    init.add_argument("--no-token", action="store_true", help="Skip the payment token")
    init.add_argument("--unit-name", default="BDG", help="Payment token unit name")
    init.add_argument("--decimals", type=_non_negative_int, default=6)
    init.add_argument("--force", action="store_true", help="Overwrite existing state")

    ce = sub.add_parser("create-event", help="Append a sale event to the catalog")
    ce.add_argument("--kind", choices=KIND_CHOICES, required=True)
    ce.add_argument("--max-total", type=_non_negative_int, required=True)
    ce.add_argument("--max-per-wallet", type=_non_negative_int, required=True)
    ce.add_argument("--price", type=_non_negative_int, required=True, help="Unit price")

    se = sub.add_parser("set-event", help="Overwrite caps/price of an event")
    se.add_argument("--event", type=_non_negative_int, required=True)
    se.add_argument("--max-total", type=_non_negative_int)
    se.add_argument("--max-per-wallet", type=_non_negative_int)
    se.add_argument("--price", type=_non_negative_int)

    act = sub.add_parser("activate", help="Append an event id to the active set")
    act.add_argument("--event", type=_non_negative_int, required=True)

    de = sub.add_parser("deactivate", help="Remove an active-set entry")
    which = de.add_mutually_exclusive_group(required=True)
    which.add_argument("--position", type=_non_negative_int, help="Active-set position")
    which.add_argument("--event", type=_non_negative_int, help="Resolve first position of id")

    tg = sub.add_parser("toggle", help="Flip global sale / bot-block switches")
    tg.add_argument("--sale", type=_on_off)
    tg.add_argument("--bot-block", type=_on_off)

    mr = sub.add_parser("merkle-root", help="Replace the allowlist Merkle root")
    mr.add_argument("--root", required=True, help="32-byte hex root")

    wl = sub.add_parser("whitelist", help="Add explicit whitelist allowance")
    wl.add_argument("--event", type=_non_negative_int, required=True)
    wl.add_argument("--addr", action="append", required=True, help="Repeatable")
    wl.add_argument(
        "--count", type=_non_negative_int, action="append", required=True,
        help="One value for all addresses, or one per --addr",
    )

    fd = sub.add_parser("fund", help="Faucet: credit µAlgos to an address")
    fd.add_argument("--addr", required=True)
    fd.add_argument("--amount", type=_non_negative_int, required=True)

    mt = sub.add_parser("mint-token", help="Mint payment tokens (token owner)")
    mt.add_argument("--to", required=True)
    mt.add_argument("--amount", type=_non_negative_int, required=True)

    apv = sub.add_parser("approve", help="Approve the engine to pull payment tokens")
    apv.add_argument("--amount", type=_non_negative_int, required=True)

    for name, help_text in (("buy", "Purchase badges"), ("preflight", "Dry-run a purchase")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--kind", choices=KIND_CHOICES, required=True)
        p.add_argument("--event", type=_non_negative_int, required=True)
        p.add_argument("--count", type=int, required=True)
        p.add_argument("--value", type=_non_negative_int, default=0, help="Attached µAlgos")
        p.add_argument("--proof", action="append", default=[], help="Hex proof node (repeatable)")
        p.add_argument("--origin", default=None, help="Originating account if proxied")

    stp = sub.add_parser("status", help="Show engine state")
    stp.add_argument("--addr", default=None, help="Include per-account view")

    wd = sub.add_parser("withdraw", help="Withdraw collected funds")
    wd.add_argument("--to", required=True)
    wd.add_argument("--token", action="store_true", help="Withdraw payment tokens")
    return ap


def run(argv: list[str] | None = None) -> dict[str, Any]:
    """Execute one subcommand and return the JSON summary."""
    args = build_parser().parse_args(argv)
    sender = resolve_sender(args)

    if args.cmd == "init":
        if pathlib.Path(args.state).exists() and not args.force:
            raise SystemExit(f"{args.state} exists; pass --force to overwrite")
        try:
            dep = state_store.bootstrap(
                sender, not args.no_token, args.unit_name, args.decimals
            )
        except SaleError as e:
            raise SystemExit(f"init failed: {e}") from e
        state_store.save_ledger(dep, args.state)
        return {
            "command": "init",
            "result": cmd_status(dep, argparse.Namespace(addr=None), sender),
            "notifications": [],
        }

    try:
        dep = state_store.load_ledger(args.state)
    except (FileNotFoundError, ValueError) as e:
        raise SystemExit(str(e)) from e

    log.debug("Loaded %d contract(s) from %s", len(dep.ledger.contracts), args.state)
    start = len(dep.ledger.logs)
    try:
        result = HANDLERS[args.cmd](dep, args, sender)
    except (SaleError, ValueError) as e:
        raise SystemExit(f"{args.cmd} failed: {e}") from e

    if args.cmd not in {"status", "preflight"}:
        state_store.save_ledger(dep, args.state)
    return {
        "command": args.cmd,
        "sender": sender,
        "result": result,
        "notifications": [n.to_dict() for n in dep.ledger.logs[start:]],
    }


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)-8s: %(message)s"
    )
    print(json.dumps(run(argv), indent=2, default=str))


if __name__ == "__main__":
    main()
