# backend/contracts/sale_engine.py
# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2025 Joltkin LLC.
#
# Badge Sale Engine
# - Catalog of sale events (append-only; the index is the event id)
# - Active set of event ids (ordered, duplicates allowed, removal by position)
# - Per-address purchase counters and explicit whitelist allowances
# - Anonymous allowlist via a single Merkle root
# - Payment in microAlgos (value attached to the call) or in the payment token
#   (pulled with transfer_from against a prior approve)
#
# Purchase order (STRICT, first failure aborts the whole call):
#   1 sale on  2 event active  3 count > 0  4 whitelist gate
#   5 per-wallet cap  6 global cap  7 bot block  8 payment
# then effects (counters) and only then interactions (token pull, issuer mint).

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from . import merkle
from .errors import (
    BotBlocked,
    EventNotActive,
    GlobalLimitExceeded,
    InsufficientAllowance,
    InsufficientPayment,
    InvalidMerkleRoot,
    InvalidProof,
    InvalidQuantity,
    LengthMismatch,
    PerWalletLimitExceeded,
    SaleError,
    SaleKindMismatch,
    SaleSuspended,
    UnknownContract,
    UnknownSaleEvent,
    UnknownSaleKind,
    WhitelistAllowanceExceeded,
)
from .notifications import NativeWithdrawn, SaleCreated, TokenWithdrawn
from .runtime import Call, Contract, Ledger, external, require_address

log = logging.getLogger(__name__)


class SaleKind(IntEnum):
    PLAIN_NATIVE = 0
    PLAIN_TOKEN = 1
    WHITELIST_NATIVE = 2
    WHITELIST_TOKEN = 3
    MERKLE_NATIVE = 4
    MERKLE_TOKEN = 5


TOKEN_KINDS = frozenset(
    {SaleKind.PLAIN_TOKEN, SaleKind.WHITELIST_TOKEN, SaleKind.MERKLE_TOKEN}
)
WHITELIST_KINDS = frozenset({SaleKind.WHITELIST_NATIVE, SaleKind.WHITELIST_TOKEN})
MERKLE_KINDS = frozenset({SaleKind.MERKLE_NATIVE, SaleKind.MERKLE_TOKEN})

# Kinds served by each public entry point.
PURCHASE_KINDS = frozenset(SaleKind) - MERKLE_KINDS
PROOF_KINDS = MERKLE_KINDS


def to_kind(value: int | str | SaleKind) -> SaleKind:
    """Accept a SaleKind, its integer value or its name (case-insensitive)."""
    try:
        if isinstance(value, str) and not value.isdigit():
            return SaleKind[value.upper().replace("-", "_")]
        return SaleKind(int(value))
    except (KeyError, ValueError) as e:
        raise UnknownSaleKind(str(value)) from e


@dataclass
class SaleEvent:
    kind: SaleKind
    max_total_units: int
    max_units_per_address: int
    unit_price: int
    current_total_units: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": int(self.kind),
            "max_total_units": self.max_total_units,
            "max_units_per_address": self.max_units_per_address,
            "unit_price": self.unit_price,
            "current_total_units": self.current_total_units,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SaleEvent:
        return cls(
            kind=SaleKind(int(d["kind"])),
            max_total_units=int(d["max_total_units"]),
            max_units_per_address=int(d["max_units_per_address"]),
            unit_price=int(d["unit_price"]),
            current_total_units=int(d.get("current_total_units", 0)),
        )


def _nested_to_dict(m: dict[str, dict[int, int]]) -> dict[str, dict[str, int]]:
    return {a: {str(i): n for i, n in per.items()} for a, per in m.items()}


def _nested_from_dict(m: dict[str, dict[str, int]]) -> dict[str, dict[int, int]]:
    return {a: {int(i): int(n) for i, n in per.items()} for a, per in m.items()}


@dataclass
class EngineStorage:
    owner: str
    issuer: str = ""  # trusted badge issuer address
    payment_token: str = ""  # fungible token address for *_TOKEN kinds
    catalog: list[SaleEvent] = field(default_factory=list)
    active: list[int] = field(default_factory=list)
    purchased: dict[str, dict[int, int]] = field(default_factory=dict)
    whitelist: dict[str, dict[int, int]] = field(default_factory=dict)
    merkle_root: bytes = merkle.EMPTY_ROOT
    sale_active: bool = False
    bot_block: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner,
            "issuer": self.issuer,
            "payment_token": self.payment_token,
            "catalog": [e.to_dict() for e in self.catalog],
            "active": list(self.active),
            "purchased": _nested_to_dict(self.purchased),
            "whitelist": _nested_to_dict(self.whitelist),
            "merkle_root": self.merkle_root.hex(),
            "sale_active": self.sale_active,
            "bot_block": self.bot_block,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> EngineStorage:
        return cls(
            owner=d["owner"],
            issuer=d.get("issuer", ""),
            payment_token=d.get("payment_token", ""),
            catalog=[SaleEvent.from_dict(e) for e in d.get("catalog", [])],
            active=[int(i) for i in d.get("active", [])],
            purchased=_nested_from_dict(d.get("purchased", {})),
            whitelist=_nested_from_dict(d.get("whitelist", {})),
            merkle_root=bytes.fromhex(d.get("merkle_root", merkle.EMPTY_ROOT.hex())),
            sale_active=bool(d.get("sale_active", False)),
            bot_block=bool(d.get("bot_block", False)),
        )


class SaleEngine(Contract):
    STORAGE = EngineStorage

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        issuer: str = "",
        payment_token: str = "",
        app_id: int | None = None,
    ) -> None:
        storage = EngineStorage(
            owner=require_address(owner), issuer=issuer, payment_token=payment_token
        )
        super().__init__(ledger, storage, app_id)

    # ------------------------------ Views ------------------------------------

    @property
    def event_count(self) -> int:
        return len(self.storage.catalog)

    @property
    def active_events(self) -> list[int]:
        return list(self.storage.active)

    def sale_event(self, event_id: int) -> SaleEvent:
        if not 0 <= event_id < len(self.storage.catalog):
            raise UnknownSaleEvent(f"event {event_id}")
        return self.storage.catalog[event_id]

    def is_active(self, event_id: int) -> bool:
        return any(active_id == event_id for active_id in self.storage.active)

    def position_of(self, event_id: int) -> int | None:
        """First position of `event_id` in the active set, for deactivate_at."""
        for position, active_id in enumerate(self.storage.active):
            if active_id == event_id:
                return position
        return None

    def purchased(self, address: str, event_id: int) -> int:
        return self.storage.purchased.get(address, {}).get(event_id, 0)

    def whitelist_allowance(self, address: str, event_id: int) -> int:
        return self.storage.whitelist.get(address, {}).get(event_id, 0)

    def quote(self, event_id: int, count: int) -> int:
        return self.sale_event(event_id).unit_price * count

    # ------------------------------ Catalog ----------------------------------

    @external
    def create_sale_event(
        self,
        call: Call,
        kind: int | str | SaleKind,
        max_total: int,
        max_per_wallet: int,
        price: int,
    ) -> int:
        """
        Append a sale event to the catalog (owner only).

        Args:
            kind: SaleKind, its integer value or its name.
            max_total: Cap on units sold across all buyers.
            max_per_wallet: Cap on units per buying address.
            price: Unit price in microAlgos or payment-token base units.

        Returns:
            The new event id (its catalog index).

        Raises:
            Unauthorized, UnknownSaleKind.
        """
        self._only_owner(call)
        event = SaleEvent(to_kind(kind), max_total, max_per_wallet, price)
        self.storage.catalog.append(event)
        event_id = len(self.storage.catalog) - 1
        self.ledger.emit(
            SaleCreated(event_id, int(event.kind), max_total, max_per_wallet, price)
        )
        log.info(
            "Created sale event %d (%s, total=%d, per-wallet=%d, price=%d)",
            event_id,
            event.kind.name,
            max_total,
            max_per_wallet,
            price,
        )
        return event_id

    # No bounds check against current_total_units: a cap below the running
    # total freezes the event.
    @external
    def set_max_total_units(self, call: Call, event_id: int, value: int) -> None:
        """Overwrite the global cap of `event_id`."""
        self._only_owner(call)
        self.sale_event(event_id).max_total_units = value

    @external
    def set_max_units_per_wallet(self, call: Call, event_id: int, value: int) -> None:
        """Overwrite the per-address cap of `event_id`."""
        self._only_owner(call)
        self.sale_event(event_id).max_units_per_address = value

    @external
    def set_unit_price(self, call: Call, event_id: int, value: int) -> None:
        """Overwrite the unit price of `event_id`; applies to later purchases only."""
        self._only_owner(call)
        self.sale_event(event_id).unit_price = value

    @external
    def activate(self, call: Call, event_id: int) -> None:
        """Append `event_id` to the active set. Duplicates and unknown ids are accepted."""
        self._only_owner(call)
        self.storage.active.append(event_id)
        log.info("Activated event %d (active set: %s)", event_id, self.storage.active)

    @external
    def deactivate_at(self, call: Call, position: int) -> None:
        """Remove the active-set entry at `position`; out of range is a no-op.

        This takes a position, not an event id. Resolve it with position_of().
        """
        self._only_owner(call)
        active = self.storage.active
        if 0 <= position < len(active):
            removed = active.pop(position)
            log.info("Deactivated event %d from position %d", removed, position)

    # ------------------------------ Switches & references --------------------

    @external
    def set_sale_active(self, call: Call, on: bool) -> None:
        """Global sale switch; while off every purchase fails with SaleSuspended."""
        self._only_owner(call)
        self.storage.sale_active = bool(on)
        log.info("Global sale %s", "on" if on else "off")

    @external
    def set_bot_block(self, call: Call, on: bool) -> None:
        """While on, purchases whose origin differs from the sender are rejected."""
        self._only_owner(call)
        self.storage.bot_block = bool(on)

    @external
    def set_merkle_root(self, call: Call, root: bytes) -> None:
        """Replace the allowlist root; proofs against the old root stop verifying."""
        self._only_owner(call)
        if len(root) != merkle.DIGEST_LEN:
            raise InvalidMerkleRoot(f"expected {merkle.DIGEST_LEN} bytes, got {len(root)}")
        self.storage.merkle_root = bytes(root)
        log.info("Merkle root set to %s", root.hex())

    @external
    def set_payment_token(self, call: Call, token: str) -> None:
        """Point *_TOKEN kinds at the fungible token deployed at `token`."""
        self._only_owner(call)
        self.storage.payment_token = require_address(token)

    @external
    def set_issuer(self, call: Call, issuer: str) -> None:
        """Set the badge issuer that purchases mint through."""
        self._only_owner(call)
        self.storage.issuer = require_address(issuer)
        log.info("Engine %d mints through issuer %s", self.app_id, issuer)

    # ------------------------------ Whitelist --------------------------------

    def _credit_whitelist(self, address: str, event_id: int, count: int) -> None:
        if count < 0:
            raise InvalidQuantity(f"whitelist count={count} for {address}")
        per = self.storage.whitelist.setdefault(require_address(address), {})
        per[event_id] = per.get(event_id, 0) + count

    @external
    def add_whitelist(self, call: Call, address: str, event_id: int, count: int) -> None:
        """
        Add `count` units to the explicit allowance of `address` for `event_id`.

        Allowances accumulate. A negative count fails with InvalidQuantity.
        """
        self._only_owner(call)
        self._credit_whitelist(address, event_id, count)

    @external
    def add_whitelist_batch(
        self,
        call: Call,
        addresses: Sequence[str],
        event_id: int,
        counts: Sequence[int],
    ) -> None:
        """Credit several addresses at once; `counts` pairs with `addresses`."""
        self._only_owner(call)
        if len(addresses) != len(counts):
            raise LengthMismatch(f"{len(addresses)} addresses vs {len(counts)} counts")
        for address, count in zip(addresses, counts):
            self._credit_whitelist(address, event_id, count)
        log.info("Whitelisted %d address(es) for event %d", len(addresses), event_id)

    # ------------------------------ Withdrawals ------------------------------

    @external
    def withdraw_native(self, call: Call, to: str) -> int:
        """
        Send the engine's whole native balance to `to` (owner only).

        Returns:
            Amount withdrawn in microAlgos.
        """
        self._only_owner(call)
        amount = self.ledger.balance_of(self.address)
        self.ledger.transfer(self.address, require_address(to), amount)
        self.ledger.emit(NativeWithdrawn(to, amount))
        log.info("Withdrew %d µAlgos to %s", amount, to)
        return amount

    @external
    def withdraw_token(self, call: Call, to: str) -> int:
        """
        Send the engine's whole payment-token balance to `to` (owner only).

        Returns:
            Amount withdrawn in token base units.
        """
        self._only_owner(call)
        token = self.ledger.resolve(self.storage.payment_token)
        amount = token.balance_of(self.address)
        token.transfer(Call(sender=self.address, origin=call.originator), to, amount)
        self.ledger.emit(TokenWithdrawn(to, token.address, amount))
        log.info("Withdrew %d token units to %s", amount, to)
        return amount

    # ------------------------------ Purchasing -------------------------------

    def _violations(
        self,
        call: Call,
        kind: int | str | SaleKind,
        event_id: int,
        count: int,
        proof: Sequence[bytes] | None,
        served: frozenset[SaleKind],
    ) -> Iterator[SaleError]:
        """Yield every failed check, in purchase order.

        Stops early when a failure leaves nothing meaningful to check.
        """
        s = self.storage
        if not s.sale_active:
            yield SaleSuspended()
        if not self.is_active(event_id):
            yield EventNotActive(f"event {event_id}")
            return
        if count <= 0:
            yield InvalidQuantity(f"count={count}")
            return
        try:
            event = self.sale_event(event_id)
            declared = to_kind(kind)
        except SaleError as e:
            yield e
            return
        if declared != event.kind or event.kind not in served:
            yield SaleKindMismatch(
                f"event {event_id} is {event.kind.name}, called as {declared.name}"
            )
            return

        if event.kind in MERKLE_KINDS:
            leaf = merkle.leaf_for(call.sender)
            if not merkle.verify(proof or [], s.merkle_root, leaf):
                yield InvalidProof(call.sender)
        elif event.kind in WHITELIST_KINDS:
            left = self.whitelist_allowance(call.sender, event_id)
            if left < count:
                yield WhitelistAllowanceExceeded(f"allowance {left} < {count}")

        bought = self.purchased(call.sender, event_id)
        if bought + count > event.max_units_per_address:
            yield PerWalletLimitExceeded(
                f"{bought} + {count} > {event.max_units_per_address}"
            )
        if event.current_total_units + count > event.max_total_units:
            yield GlobalLimitExceeded(
                f"{event.current_total_units} + {count} > {event.max_total_units}"
            )
        if s.bot_block and call.originator != call.sender:
            yield BotBlocked(f"origin {call.originator} != sender {call.sender}")

        cost = event.unit_price * count
        if event.kind in TOKEN_KINDS:
            if not s.payment_token:
                yield UnknownContract("payment token not configured")
                return
            allowed = self.ledger.resolve(s.payment_token).allowance(
                call.sender, self.address
            )
            if allowed < cost:
                yield InsufficientAllowance(f"approved {allowed} < {cost}")
        elif call.value < cost:
            yield InsufficientPayment(f"sent {call.value} < {cost}")

    def _purchase(
        self,
        call: Call,
        kind: int | str | SaleKind,
        event_id: int,
        count: int,
        proof: Sequence[bytes] | None,
        served: frozenset[SaleKind],
    ) -> int:
        for violation in self._violations(call, kind, event_id, count, proof, served):
            log.debug("Purchase by %s rejected: %s", call.sender, violation)
            raise violation

        s = self.storage
        event = s.catalog[event_id]

        # Effects: every counter moves before any outbound call.
        per = s.purchased.setdefault(call.sender, {})
        per[event_id] = per.get(event_id, 0) + count
        if event.kind in WHITELIST_KINDS:
            s.whitelist[call.sender][event_id] -= count
        event.current_total_units += count

        # Interactions.
        as_engine = Call(sender=self.address, origin=call.originator)
        if event.kind in TOKEN_KINDS:
            token = self.ledger.resolve(s.payment_token)
            token.transfer_from(
                as_engine, call.sender, self.address, event.unit_price * count
            )
        last_token_id = self.ledger.resolve(s.issuer).mint(
            as_engine, call.sender, event_id, count
        )
        log.info(
            "%s bought %d badge(s) in event %d (%d/%d sold)",
            call.sender,
            count,
            event_id,
            event.current_total_units,
            event.max_total_units,
        )
        return last_token_id

    @external
    def purchase(
        self, call: Call, kind: int | str | SaleKind, event_id: int, count: int
    ) -> int:
        """Buy from a plain or explicit-whitelist event; returns last token id."""
        return self._purchase(call, kind, event_id, count, None, PURCHASE_KINDS)

    @external
    def purchase_with_proof(
        self,
        call: Call,
        kind: int | str | SaleKind,
        event_id: int,
        count: int,
        proof: Sequence[bytes],
    ) -> int:
        """Buy from a Merkle-allowlist event; returns last token id."""
        return self._purchase(call, kind, event_id, count, proof, PROOF_KINDS)

    def preflight(
        self,
        call: Call,
        kind: int | str | SaleKind,
        event_id: int,
        count: int,
        proof: Sequence[bytes] | None = None,
    ) -> list[SaleError]:
        """Dry-run the purchase checks; an empty list means the call would pass."""
        try:
            served = PROOF_KINDS if to_kind(kind) in PROOF_KINDS else PURCHASE_KINDS
        except UnknownSaleKind as e:
            return [e]
        return list(self._violations(call, kind, event_id, count, proof, served))
