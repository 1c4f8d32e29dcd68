# tests/conftest.py
# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: fresh accounts, a bootstrapped deployment, Merkle trees."""

from __future__ import annotations

from collections.abc import Sequence

import pytest
from algosdk import account

from backend.contracts import merkle
from backend.contracts.runtime import Call
from backend.contracts.sale_engine import SaleKind
from backend.core import state_store


def new_address() -> str:
    _, addr = account.generate_account()
    return addr


def build_tree(addresses: Sequence[str]) -> tuple[bytes, dict[str, list[bytes]]]:
    """Sorted-pair Merkle tree; odd nodes are carried up unchanged."""
    layer = [merkle.leaf_for(a) for a in addresses]
    proofs: dict[str, list[bytes]] = {a: [] for a in addresses}
    index = {a: i for i, a in enumerate(addresses)}
    while len(layer) > 1:
        for a in addresses:
            sibling = index[a] ^ 1
            if sibling < len(layer):
                proofs[a].append(layer[sibling])
            index[a] //= 2
        layer = [
            merkle.hash_pair(layer[i], layer[i + 1]) if i + 1 < len(layer) else layer[i]
            for i in range(0, len(layer), 2)
        ]
    return layer[0], proofs


@pytest.fixture
def owner() -> str:
    return new_address()


@pytest.fixture
def alice() -> str:
    return new_address()


@pytest.fixture
def bob() -> str:
    return new_address()


@pytest.fixture
def dep(owner: str) -> state_store.Deployment:
    return state_store.bootstrap(owner)


@pytest.fixture
def admin(owner: str) -> Call:
    return Call(sender=owner)


@pytest.fixture
def engine(dep):
    return dep.engine


@pytest.fixture
def live_event(dep, admin):
    """Factory: create + activate an event and switch the sale on."""

    def make(
        kind: SaleKind = SaleKind.PLAIN_NATIVE,
        max_total: int = 100,
        max_per_wallet: int = 2,
        price: int = 1,
    ) -> int:
        event_id = dep.engine.create_sale_event(admin, kind, max_total, max_per_wallet, price)
        dep.engine.activate(admin, event_id)
        dep.engine.set_sale_active(admin, True)
        return event_id

    return make
