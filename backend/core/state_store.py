# backend/core/state_store.py
# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2025 Joltkin LLC.
#
# Purpose
# -------
# Deploy the sale contracts on a fresh Ledger and persist the whole ledger
# (balances + contract storage) as one JSON document between CLI runs and
# console sessions.
#
# File shape
# ----------
#   {
#     "version": 1,
#     "next_app_id": 1004,
#     "balances": {"<addr>": <µAlgos>, ...},
#     "contracts": [{"type": "engine", "app_id": 1003, "state": {...}}, ...]
#   }
#
# The notification log is not persisted; callers print what a command emitted.

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from backend.contracts.badge_issuer import BadgeIssuer
from backend.contracts.fungible_token import FungibleToken
from backend.contracts.runtime import Call, Contract, Ledger
from backend.contracts.sale_engine import SaleEngine

log = logging.getLogger(__name__)

STATE_VERSION = 1

CONTRACT_TYPES: dict[str, type[Contract]] = {
    "issuer": BadgeIssuer,
    "engine": SaleEngine,
    "token": FungibleToken,
}


@dataclass
class Deployment:
    """Handles to the contracts deployed on one ledger."""

    ledger: Ledger
    issuer: BadgeIssuer
    engine: SaleEngine
    token: FungibleToken | None = None


def bootstrap(
    owner: str, with_token: bool = True, unit_name: str = "BDG", decimals: int = 6
) -> Deployment:
    """Deploy issuer, (payment token) and engine, then wire the trust handshake."""
    ledger = Ledger()
    issuer = BadgeIssuer(ledger, owner)
    token = FungibleToken(ledger, owner, unit_name, decimals) if with_token else None
    engine = SaleEngine(ledger, owner)

    admin = Call(sender=owner)
    issuer.set_sale_engine(admin, engine.address)
    engine.set_issuer(admin, issuer.address)
    if token is not None:
        engine.set_payment_token(admin, token.address)

    log.info(
        "Bootstrapped issuer=%d engine=%d token=%s",
        issuer.app_id,
        engine.app_id,
        token.app_id if token else "-",
    )
    return Deployment(ledger, issuer, engine, token)


def _type_name(contract: Contract) -> str:
    for name, cls in CONTRACT_TYPES.items():
        if type(contract) is cls:
            return name
    raise TypeError(f"Unsupported contract type: {type(contract).__name__}")


def to_dict(dep: Deployment) -> dict[str, Any]:
    ledger = dep.ledger
    return {
        "version": STATE_VERSION,
        "next_app_id": ledger.next_app_id,
        "balances": dict(ledger.balances),
        "contracts": [
            {"type": _type_name(c), "app_id": c.app_id, "state": c.storage.to_dict()}
            for c in ledger.contracts.values()
        ],
    }


def from_dict(data: dict[str, Any]) -> Deployment:
    if data.get("version") != STATE_VERSION:
        raise ValueError(f"Unsupported state version: {data.get('version')}")
    ledger = Ledger(next_app_id=int(data["next_app_id"]))
    ledger.balances = {a: int(v) for a, v in data.get("balances", {}).items()}

    found: dict[str, Contract] = {}
    for entry in data.get("contracts", []):
        cls = CONTRACT_TYPES.get(entry["type"])
        if cls is None:
            raise ValueError(f"Unknown contract type in state: {entry['type']}")
        found.setdefault(entry["type"], cls.restore(ledger, int(entry["app_id"]), entry["state"]))

    try:
        return Deployment(
            ledger=ledger,
            issuer=found["issuer"],  # type: ignore[arg-type]
            engine=found["engine"],  # type: ignore[arg-type]
            token=found.get("token"),  # type: ignore[arg-type]
        )
    except KeyError as e:
        raise ValueError(f"State is missing a {e.args[0]} contract") from e


def save_ledger(dep: Deployment, path: str | Path) -> None:
    """Write state atomically (temp file + rename) so a crash never truncates it."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(to_dict(dep), fh, indent=2, sort_keys=True)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
    log.debug("Saved ledger state to %s", path)


def load_ledger(path: str | Path) -> Deployment:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"No sale state at {path}. Run `init` first.")
    with path.open(encoding="utf-8") as fh:
        return from_dict(json.load(fh))
