# backend/contracts/runtime.py
# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2025 Joltkin LLC.
#
# In-memory host for the sale contracts.
#
# The Ledger plays the part the chain plays for a deployed application:
#   - assigns application ids and derives application addresses (algosdk)
#   - holds native balances in microAlgos
#   - makes every external call all-or-nothing (snapshot + restore)
#   - collects notifications emitted by contracts
#
# It does not model fees, rounds or opcode budgets.

from __future__ import annotations

import copy
import functools
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

from algosdk import encoding
from algosdk.logic import get_application_address

from .errors import InsufficientFunds, InvalidAddress, Unauthorized, UnknownContract
from .notifications import Notification

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

FIRST_APP_ID = 1001


@dataclass(frozen=True)
class Call:
    """Context of one external call.

    `sender` is the immediate caller; `origin` the account that signed the
    outermost call (defaults to `sender`); `value` is attached microAlgos.
    """

    sender: str
    origin: str | None = None
    value: int = 0

    @property
    def originator(self) -> str:
        return self.origin or self.sender


def require_address(addr: str) -> str:
    """Return `addr` if it is a valid 58-char Algorand address, else raise."""
    if not isinstance(addr, str) or not encoding.is_valid_address(addr):
        raise InvalidAddress(str(addr))
    return addr


class Ledger:
    """Balances, deployed contracts and the notification log."""

    def __init__(self, next_app_id: int = FIRST_APP_ID) -> None:
        self.balances: dict[str, int] = {}
        self.contracts: dict[str, Contract] = {}
        self.logs: list[Notification] = []
        self.next_app_id = next_app_id
        self._depth = 0

    # ------------------------------ Registry ---------------------------------

    def deploy(self, contract: Contract, app_id: int | None = None) -> int:
        if app_id is None:
            app_id = self.next_app_id
        self.next_app_id = max(self.next_app_id, app_id + 1)
        self.contracts[get_application_address(app_id)] = contract
        log.debug("Deployed %s as app %d", type(contract).__name__, app_id)
        return app_id

    def resolve(self, address: str) -> Contract:
        try:
            return self.contracts[address]
        except KeyError as e:
            raise UnknownContract(address) from e

    # ------------------------------ Native currency --------------------------

    def balance_of(self, address: str) -> int:
        return self.balances.get(address, 0)

    def fund(self, address: str, amount: int) -> None:
        """Credit `amount` microAlgos out of thin air (faucet)."""
        if amount <= 0:
            raise ValueError(f"Amount must be > 0 (µAlgos). Got: {amount}")
        require_address(address)
        self.balances[address] = self.balance_of(address) + amount

    def transfer(self, sender: str, receiver: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Negative transfer amount: {amount}")
        have = self.balance_of(sender)
        if have < amount:
            raise InsufficientFunds(f"{sender} holds {have}, needs {amount}")
        self.balances[sender] = have - amount
        self.balances[receiver] = self.balance_of(receiver) + amount

    # ------------------------------ Notifications ----------------------------

    def emit(self, notification: Notification) -> None:
        self.logs.append(notification)

    # ------------------------------ Atomicity --------------------------------

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run a block as one transaction; nested blocks join the outer one."""
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        balances = dict(self.balances)
        storages = {a: copy.deepcopy(c.storage) for a, c in self.contracts.items()}
        log_len = len(self.logs)
        self._depth = 1
        try:
            yield
        except BaseException:
            self.balances = balances
            for addr, storage in storages.items():
                self.contracts[addr].storage = storage
            del self.logs[log_len:]
            raise
        finally:
            self._depth = 0


def external(method: F) -> F:
    """Mark a contract method as an externally callable, atomic entry point.

    Attached `call.value` moves from the sender to the contract before the
    body runs, so an aborted call also returns the payment.
    """

    @functools.wraps(method)
    def wrapper(self: Contract, call: Call, *args: Any, **kwargs: Any) -> Any:
        with self.ledger.atomic():
            if call.value:
                self.ledger.transfer(call.sender, self.address, call.value)
            return method(self, call, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class Contract:
    """Base for an application deployed on a Ledger.

    Subclasses keep all mutable state in `self.storage`, a dataclass with
    `to_dict()` / `from_dict()`, so the ledger can snapshot and persist it.
    """

    STORAGE: Any = None

    def __init__(self, ledger: Ledger, storage: Any, app_id: int | None = None) -> None:
        self.ledger = ledger
        self.storage = storage
        self.app_id = ledger.deploy(self, app_id)
        self.address = get_application_address(self.app_id)

    @classmethod
    def restore(cls, ledger: Ledger, app_id: int, state: dict[str, Any]) -> Contract:
        contract = cls.__new__(cls)
        Contract.__init__(contract, ledger, cls.STORAGE.from_dict(state), app_id)
        return contract

    def _only_owner(self, call: Call) -> None:
        if call.sender != self.storage.owner:
            raise Unauthorized(f"{call.sender} is not the owner")

    @external
    def transfer_ownership(self, call: Call, new_owner: str) -> None:
        """Hand the owner role to `new_owner`; the caller loses admin rights."""
        self._only_owner(call)
        self.storage.owner = require_address(new_owner)
        log.info("%s ownership -> %s", type(self).__name__, new_owner)
