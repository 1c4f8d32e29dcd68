# tests/test_runtime.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import pytest

from backend.contracts.badge_issuer import BadgeIssuer
from backend.contracts.errors import InsufficientBalance, InsufficientFunds, InvalidAddress, UnknownContract
from backend.contracts.fungible_token import FungibleToken
from backend.contracts.runtime import Call, Ledger, require_address
from backend.contracts.sale_engine import SaleEngine
from conftest import new_address


def test_call_originator_defaults_to_sender():
    a, b = new_address(), new_address()
    assert Call(a).originator == a
    assert Call(a, origin=b).originator == b


def test_require_address():
    addr = new_address()
    assert require_address(addr) == addr
    with pytest.raises(InvalidAddress):
        require_address("ABC")


def test_fund_and_transfer():
    ledger = Ledger()
    a, b = new_address(), new_address()
    ledger.fund(a, 10)
    ledger.transfer(a, b, 4)
    assert (ledger.balance_of(a), ledger.balance_of(b)) == (6, 4)

    with pytest.raises(InsufficientFunds):
        ledger.transfer(a, b, 7)
    with pytest.raises(ValueError):
        ledger.fund(a, 0)


def test_atomic_restores_balances_storage_and_logs(owner):
    ledger = Ledger()
    token = FungibleToken(ledger, owner)
    holder = new_address()
    ledger.fund(holder, 10)
    token.mint(Call(owner), holder, 5)
    logs_before = len(ledger.logs)

    with pytest.raises(InsufficientBalance):
        with ledger.atomic():
            ledger.transfer(holder, owner, 3)
            token.transfer(Call(holder), owner, 2)
            token.transfer(Call(holder), owner, 99)

    assert ledger.balance_of(holder) == 10
    assert token.balance_of(holder) == 5
    assert token.balance_of(owner) == 0
    assert len(ledger.logs) == logs_before


def test_payment_returns_when_call_fails(owner):
    ledger = Ledger()
    token = FungibleToken(ledger, owner)
    payer = new_address()
    ledger.fund(payer, 10)

    with pytest.raises(InsufficientBalance):
        token.transfer(Call(payer, value=4), owner, 1)
    assert ledger.balance_of(payer) == 10
    assert ledger.balance_of(token.address) == 0


def test_app_ids_and_resolution(dep):
    assert (dep.issuer.app_id, dep.token.app_id, dep.engine.app_id) == (1001, 1002, 1003)
    assert dep.ledger.resolve(dep.engine.address) is dep.engine
    with pytest.raises(UnknownContract):
        dep.ledger.resolve(new_address())


def test_transfer_from_needs_allowance(owner):
    ledger = Ledger()
    token = FungibleToken(ledger, owner)
    spender, to = new_address(), new_address()
    token.mint(Call(owner), owner, 10)
    token.approve(Call(owner), spender, 4)

    token.transfer_from(Call(spender), owner, to, 4)
    assert token.balance_of(to) == 4
    assert token.allowance(owner, spender) == 0


@pytest.mark.parametrize("cls", [BadgeIssuer, FungibleToken, SaleEngine])
def test_external_methods_are_documented(cls):
    undocumented = [
        name
        for name, attr in vars(cls).items()
        if callable(attr) and hasattr(attr, "__wrapped__") and not (attr.__doc__ or "").strip()
    ]
    assert undocumented == []
