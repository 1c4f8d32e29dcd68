# backend/contracts/badge_issuer.py
# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2025 Joltkin LLC.
#
# Badge Issuer
# - Holds the badge collection (sequential token ids starting at 1)
# - `mint` is callable only by the trusted Sale Engine address
# - `batch_mint` is the owner's airdrop path
#
# Every mint emits the highest token id after the mint so off-chain metadata
# services can resolve the new ids without scanning ownership.

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from .errors import InvalidQuantity, LengthMismatch, Unauthorized
from .notifications import BadgeBatchMinted, BadgeMinted
from .runtime import Call, Contract, Ledger, external, require_address

log = logging.getLogger(__name__)

FIRST_TOKEN_ID = 1


@dataclass
class IssuerStorage:
    owner: str
    sale_engine: str = ""  # trusted caller of mint(); empty until handshake
    base_uri: str = ""
    next_token_id: int = FIRST_TOKEN_ID
    owners: dict[int, str] = field(default_factory=dict)
    balances: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner,
            "sale_engine": self.sale_engine,
            "base_uri": self.base_uri,
            "next_token_id": self.next_token_id,
            "owners": {str(t): a for t, a in self.owners.items()},
            "balances": dict(self.balances),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> IssuerStorage:
        return cls(
            owner=d["owner"],
            sale_engine=d.get("sale_engine", ""),
            base_uri=d.get("base_uri", ""),
            next_token_id=int(d.get("next_token_id", FIRST_TOKEN_ID)),
            owners={int(t): a for t, a in d.get("owners", {}).items()},
            balances={a: int(n) for a, n in d.get("balances", {}).items()},
        )


class BadgeIssuer(Contract):
    STORAGE = IssuerStorage

    def __init__(self, ledger: Ledger, owner: str, app_id: int | None = None) -> None:
        super().__init__(ledger, IssuerStorage(owner=require_address(owner)), app_id)

    # ------------------------------ Views ------------------------------------

    @property
    def total_minted(self) -> int:
        return self.storage.next_token_id - FIRST_TOKEN_ID

    @property
    def last_token_id(self) -> int:
        return self.storage.next_token_id - 1

    def owner_of(self, token_id: int) -> str | None:
        return self.storage.owners.get(token_id)

    def balance_of(self, address: str) -> int:
        return self.storage.balances.get(address, 0)

    # ------------------------------ Minting ----------------------------------

    def _mint(self, to: str, count: int) -> None:
        s = self.storage
        for token_id in range(s.next_token_id, s.next_token_id + count):
            s.owners[token_id] = to
        s.next_token_id += count
        s.balances[to] = s.balances.get(to, 0) + count

    @external
    def mint(self, call: Call, to: str, event_id: int, count: int) -> int:
        """Mint `count` badges for a sale event; returns the last token id."""
        if not self.storage.sale_engine or call.sender != self.storage.sale_engine:
            raise Unauthorized(f"{call.sender} is not the trusted sale engine")
        if count <= 0:
            raise InvalidQuantity(f"count={count}")
        self._mint(require_address(to), count)
        self.ledger.emit(BadgeMinted(to, event_id, count, self.last_token_id))
        log.info("Minted %d badge(s) for event %d to %s", count, event_id, to)
        return self.last_token_id

    @external
    def batch_mint(
        self,
        call: Call,
        recipients: Sequence[str],
        quantities: Sequence[int],
        aux_data: bytes = b"",
    ) -> int:
        """
        Owner airdrop: mint `quantities[i]` badges to `recipients[i]`.

        Args:
            recipients: Receiving addresses.
            quantities: Positive counts, one per recipient.
            aux_data: Opaque payload carried with the call; not stored.

        Returns:
            The last token id minted.

        Raises:
            Unauthorized, LengthMismatch, InvalidQuantity (nothing is minted).
        """
        self._only_owner(call)
        if len(recipients) != len(quantities):
            raise LengthMismatch(
                f"{len(recipients)} recipients vs {len(quantities)} quantities"
            )
        for to, count in zip(recipients, quantities):
            if count <= 0:
                raise InvalidQuantity(f"count={count} for {to}")
            self._mint(require_address(to), count)
        self.ledger.emit(BadgeBatchMinted(self.last_token_id))
        log.info(
            "Batch minted %d badge(s) to %d recipient(s)",
            sum(quantities),
            len(recipients),
        )
        return self.last_token_id

    # ------------------------------ Admin ------------------------------------

    @external
    def set_base_uri(self, call: Call, base_uri: str) -> None:
        """Set the metadata URI prefix used by off-chain badge resolvers."""
        self._only_owner(call)
        self.storage.base_uri = base_uri

    @external
    def set_sale_engine(self, call: Call, engine: str) -> None:
        """Trust `engine` as the only caller allowed to `mint`."""
        self._only_owner(call)
        self.storage.sale_engine = require_address(engine)
        log.info("Issuer %d trusts sale engine %s", self.app_id, engine)
