# backend/contracts/notifications.py
# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2025 Joltkin LLC.
#
# Log records emitted by the contracts for off-chain metadata/indexing systems.
# Records are appended to `Ledger.logs` and dropped again if the call reverts.

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Notification:
    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.name, **dataclasses.asdict(self)}


@dataclass(frozen=True)
class BadgeMinted(Notification):
    to: str
    event_id: int
    count: int
    last_token_id: int


@dataclass(frozen=True)
class BadgeBatchMinted(Notification):
    last_token_id: int


@dataclass(frozen=True)
class SaleCreated(Notification):
    event_id: int
    kind: int
    max_total_units: int
    max_units_per_address: int
    unit_price: int


@dataclass(frozen=True)
class NativeWithdrawn(Notification):
    to: str
    amount: int


@dataclass(frozen=True)
class TokenWithdrawn(Notification):
    to: str
    token: str
    amount: int


@dataclass(frozen=True)
class Transfer(Notification):
    sender: str
    receiver: str
    amount: int


@dataclass(frozen=True)
class Approval(Notification):
    owner: str
    spender: str
    amount: int
