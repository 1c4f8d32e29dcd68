# tests/test_badge_issuer.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import pytest

from backend.contracts.errors import InvalidQuantity, LengthMismatch, Unauthorized
from backend.contracts.notifications import BadgeBatchMinted, BadgeMinted
from backend.contracts.runtime import Call


def test_mint_only_from_trusted_engine(dep, admin, alice):
    issuer = dep.issuer
    for caller in (admin, Call(alice)):
        with pytest.raises(Unauthorized):
            issuer.mint(caller, alice, 0, 1)
    assert issuer.total_minted == 0


def test_mint_assigns_sequential_ids(dep, alice, bob):
    issuer, as_engine = dep.issuer, Call(dep.engine.address)

    assert issuer.mint(as_engine, alice, 0, 2) == 2
    assert issuer.mint(as_engine, bob, 3, 1) == 3

    assert [issuer.owner_of(t) for t in (1, 2, 3)] == [alice, alice, bob]
    assert issuer.owner_of(4) is None
    assert dep.ledger.logs[-1] == BadgeMinted(bob, 3, 1, 3)


def test_mint_rejects_zero(dep, alice):
    with pytest.raises(InvalidQuantity):
        dep.issuer.mint(Call(dep.engine.address), alice, 0, 0)


def test_batch_mint(dep, admin, alice, bob):
    issuer = dep.issuer
    assert issuer.batch_mint(admin, [alice, bob], [3, 1], b"airdrop") == 4
    assert issuer.balance_of(alice) == 3
    assert issuer.balance_of(bob) == 1
    assert dep.ledger.logs[-1] == BadgeBatchMinted(4)


def test_batch_mint_length_mismatch_mints_nothing(dep, admin, alice, bob):
    with pytest.raises(LengthMismatch):
        dep.issuer.batch_mint(admin, [alice, bob], [1])
    assert dep.issuer.total_minted == 0


def test_batch_mint_is_all_or_nothing(dep, admin, alice, bob):
    with pytest.raises(InvalidQuantity):
        dep.issuer.batch_mint(admin, [alice, bob], [2, 0])
    assert dep.issuer.balance_of(alice) == 0
    assert dep.issuer.total_minted == 0


def test_batch_mint_is_owner_only(dep, alice):
    with pytest.raises(Unauthorized):
        dep.issuer.batch_mint(Call(alice), [alice], [1])


def test_set_sale_engine_is_owner_only(dep, alice):
    with pytest.raises(Unauthorized):
        dep.issuer.set_sale_engine(Call(alice), alice)
    assert dep.issuer.storage.sale_engine == dep.engine.address


def test_set_base_uri(dep, admin, alice):
    dep.issuer.set_base_uri(admin, "ipfs://badges/")
    assert dep.issuer.storage.base_uri == "ipfs://badges/"
    with pytest.raises(Unauthorized):
        dep.issuer.set_base_uri(Call(alice), "https://evil/")
