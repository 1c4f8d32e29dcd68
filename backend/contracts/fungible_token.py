# backend/contracts/fungible_token.py
# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2025 Joltkin LLC.
#
# Allowance-based fungible token used as the payment currency of token sales.
# Amounts are integer base units; `decimals` only affects display.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .errors import InsufficientAllowance, InsufficientBalance, InvalidAmount
from .notifications import Approval, Transfer
from .runtime import Call, Contract, Ledger, external, require_address

log = logging.getLogger(__name__)


def _require_amount(amount: int) -> None:
    if amount < 0:
        raise InvalidAmount(f"negative amount: {amount}")


@dataclass
class TokenStorage:
    owner: str
    unit_name: str = "BDG"
    decimals: int = 6
    total_supply: int = 0
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner,
            "unit_name": self.unit_name,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "balances": dict(self.balances),
            "allowances": {o: dict(s) for o, s in self.allowances.items()},
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TokenStorage:
        return cls(
            owner=d["owner"],
            unit_name=d.get("unit_name", "BDG"),
            decimals=int(d.get("decimals", 6)),
            total_supply=int(d.get("total_supply", 0)),
            balances={a: int(v) for a, v in d.get("balances", {}).items()},
            allowances={
                o: {s: int(v) for s, v in spenders.items()}
                for o, spenders in d.get("allowances", {}).items()
            },
        )


class FungibleToken(Contract):
    STORAGE = TokenStorage

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        unit_name: str = "BDG",
        decimals: int = 6,
        app_id: int | None = None,
    ) -> None:
        storage = TokenStorage(
            owner=require_address(owner), unit_name=unit_name, decimals=decimals
        )
        super().__init__(ledger, storage, app_id)

    # ------------------------------ Views ------------------------------------

    def balance_of(self, address: str) -> int:
        return self.storage.balances.get(address, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.storage.allowances.get(owner, {}).get(spender, 0)

    # ------------------------------ Mutations --------------------------------

    def _move(self, sender: str, receiver: str, amount: int) -> None:
        _require_amount(amount)
        have = self.balance_of(sender)
        if have < amount:
            raise InsufficientBalance(f"{sender} holds {have}, needs {amount}")
        balances = self.storage.balances
        balances[sender] = have - amount
        balances[receiver] = balances.get(receiver, 0) + amount
        self.ledger.emit(Transfer(sender, receiver, amount))

    @external
    def mint(self, call: Call, to: str, amount: int) -> None:
        """
        Create new tokens for `to` (token owner only).

        Args:
            to: Recipient address.
            amount: Base units to create. Must be >= 0.
        """
        self._only_owner(call)
        _require_amount(amount)
        require_address(to)
        self.storage.balances[to] = self.balance_of(to) + amount
        self.storage.total_supply += amount
        self.ledger.emit(Transfer(self.address, to, amount))
        log.debug("Minted %d %s to %s", amount, self.storage.unit_name, to)

    @external
    def transfer(self, call: Call, to: str, amount: int) -> None:
        """Move `amount` base units from the caller to `to`."""
        self._move(call.sender, require_address(to), amount)

    @external
    def approve(self, call: Call, spender: str, amount: int) -> None:
        """
        Let `spender` pull up to `amount` of the caller's tokens.

        The new allowance replaces the previous one; it is not added to it.
        """
        _require_amount(amount)
        self.storage.allowances.setdefault(call.sender, {})[spender] = amount
        self.ledger.emit(Approval(call.sender, spender, amount))

    @external
    def transfer_from(self, call: Call, owner: str, to: str, amount: int) -> None:
        """
        Move `amount` from `owner` to `to` against the caller's allowance.

        Args:
            owner: Account whose tokens are pulled.
            to: Recipient address.
            amount: Base units. Must be >= 0 and within the allowance.

        Raises:
            InvalidAmount, InsufficientAllowance, InsufficientBalance.
        """
        _require_amount(amount)
        allowed = self.allowance(owner, call.sender)
        if allowed < amount:
            raise InsufficientAllowance(
                f"{call.sender} may spend {allowed} of {owner}, needs {amount}"
            )
        self._move(owner, require_address(to), amount)
        self.storage.allowances.setdefault(owner, {})[call.sender] = allowed - amount
