# tests/test_sale_catalog.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import pytest

from backend.contracts.errors import (
    GlobalLimitExceeded,
    InvalidMerkleRoot,
    InvalidQuantity,
    Unauthorized,
    UnknownSaleEvent,
    UnknownSaleKind,
)
from backend.contracts.notifications import SaleCreated
from backend.contracts.runtime import Call
from backend.contracts.sale_engine import SaleKind, to_kind


def test_create_sale_event_assigns_sequential_ids(engine, admin):
    first = engine.create_sale_event(admin, SaleKind.PLAIN_NATIVE, 100, 2, 1)
    second = engine.create_sale_event(admin, "whitelist-token", 10, 1, 5)

    assert (first, second) == (0, 1)
    assert engine.event_count == 2
    assert engine.sale_event(1).kind is SaleKind.WHITELIST_TOKEN
    assert engine.sale_event(1).current_total_units == 0
    assert engine.active_events == []


def test_create_sale_event_emits_notification(dep, engine, admin):
    engine.create_sale_event(admin, SaleKind.MERKLE_NATIVE, 50, 3, 7)

    note = dep.ledger.logs[-1]
    assert isinstance(note, SaleCreated)
    assert note.to_dict() == {
        "event": "SaleCreated",
        "event_id": 0,
        "kind": 4,
        "max_total_units": 50,
        "max_units_per_address": 3,
        "unit_price": 7,
    }


def test_unknown_kind_rejected_and_catalog_untouched(engine, admin):
    with pytest.raises(UnknownSaleKind):
        engine.create_sale_event(admin, 6, 100, 2, 1)
    assert engine.event_count == 0


@pytest.mark.parametrize(
    "value, expected",
    [(0, SaleKind.PLAIN_NATIVE), ("3", SaleKind.WHITELIST_TOKEN), ("merkle-token", SaleKind.MERKLE_TOKEN)],
)
def test_to_kind_accepts_ints_digits_and_names(value, expected):
    assert to_kind(value) is expected


def test_setters_overwrite_without_bounds_check(engine, admin, alice, live_event):
    event_id = live_event(max_total=10, max_per_wallet=5)
    engine.ledger.fund(alice, 10)
    engine.purchase(Call(alice, value=3), SaleKind.PLAIN_NATIVE, event_id, 3)

    # Lowering the cap below what was already sold is accepted ...
    engine.set_max_total_units(admin, event_id, 2)
    engine.set_max_units_per_wallet(admin, event_id, 9)
    engine.set_unit_price(admin, event_id, 0)
    event = engine.sale_event(event_id)
    assert (event.max_total_units, event.max_units_per_address, event.unit_price) == (2, 9, 0)

    # ... and freezes the event.
    with pytest.raises(GlobalLimitExceeded):
        engine.purchase(Call(alice), SaleKind.PLAIN_NATIVE, event_id, 1)


def test_setter_on_unknown_event(engine, admin):
    with pytest.raises(UnknownSaleEvent):
        engine.set_unit_price(admin, 0, 5)


def test_activate_allows_duplicates_and_unknown_ids(engine, admin):
    engine.create_sale_event(admin, SaleKind.PLAIN_NATIVE, 1, 1, 1)
    engine.activate(admin, 0)
    engine.activate(admin, 0)
    engine.activate(admin, 42)

    assert engine.active_events == [0, 0, 42]


def test_deactivate_is_positional(engine, admin):
    for event_id in (5, 6, 5):
        engine.activate(admin, event_id)

    engine.deactivate_at(admin, engine.position_of(6))
    assert engine.active_events == [5, 5]

    # One deactivation leaves the duplicate behind.
    engine.deactivate_at(admin, engine.position_of(5))
    assert engine.active_events == [5]
    assert engine.is_active(5)
    assert engine.position_of(6) is None


def test_deactivate_out_of_range_is_noop(engine, admin):
    engine.activate(admin, 1)
    engine.deactivate_at(admin, 1)
    engine.deactivate_at(admin, 99)
    assert engine.active_events == [1]


def test_admin_surface_is_owner_only(engine, admin, alice):
    stranger = Call(alice)
    engine.create_sale_event(admin, SaleKind.PLAIN_NATIVE, 1, 1, 1)

    attempts = [
        lambda: engine.create_sale_event(stranger, SaleKind.PLAIN_NATIVE, 1, 1, 1),
        lambda: engine.set_max_total_units(stranger, 0, 5),
        lambda: engine.activate(stranger, 0),
        lambda: engine.deactivate_at(stranger, 0),
        lambda: engine.set_sale_active(stranger, True),
        lambda: engine.set_bot_block(stranger, True),
        lambda: engine.set_merkle_root(stranger, bytes(32)),
        lambda: engine.add_whitelist(stranger, alice, 0, 1),
        lambda: engine.withdraw_native(stranger, alice),
    ]
    for attempt in attempts:
        with pytest.raises(Unauthorized):
            attempt()
    assert engine.event_count == 1
    assert engine.active_events == []
    assert engine.storage.sale_active is False


def test_transfer_ownership(engine, admin, alice):
    engine.transfer_ownership(admin, alice)
    with pytest.raises(Unauthorized):
        engine.set_sale_active(admin, True)
    engine.set_sale_active(Call(alice), True)
    assert engine.storage.sale_active


def test_set_merkle_root_requires_32_bytes(engine, admin):
    with pytest.raises(InvalidMerkleRoot):
        engine.set_merkle_root(admin, b"\x01" * 31)
    assert engine.storage.merkle_root == bytes(32)


def test_quote(engine, admin):
    engine.create_sale_event(admin, SaleKind.PLAIN_TOKEN, 10, 2, 250)
    assert engine.quote(0, 3) == 750


def test_whitelist_rejects_negative_count(engine, admin, alice):
    engine.add_whitelist(admin, alice, 0, 2)
    with pytest.raises(InvalidQuantity):
        engine.add_whitelist(admin, alice, 0, -1)
    assert engine.whitelist_allowance(alice, 0) == 2

    # Zero is accepted and changes nothing.
    engine.add_whitelist(admin, alice, 0, 0)
    assert engine.whitelist_allowance(alice, 0) == 2


def test_whitelist_batch_with_negative_count_credits_nobody(engine, admin, alice, bob):
    with pytest.raises(InvalidQuantity):
        engine.add_whitelist_batch(admin, [alice, bob], 0, [3, -3])
    assert engine.whitelist_allowance(alice, 0) == 0
    assert engine.whitelist_allowance(bob, 0) == 0
