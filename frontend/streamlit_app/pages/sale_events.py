# frontend/streamlit_app/pages/sale_events.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Streamlit page: Sale Events

Operator UI for the admin surface of the sale engine:
  • Catalog overview and new event creation
  • Cap/price overrides (no bounds check: a cap below "sold" freezes the event)
  • Active set: activate by id, deactivate by *position*
  • Global sale and bot-block switches
  • Merkle root replacement and explicit whitelist allowances

Every action goes through `run_action`, which persists the ledger on success
and surfaces the rejection reason via st.error() otherwise.
"""

import streamlit as st

from backend.contracts import merkle
from backend.contracts.runtime import Call
from backend.contracts.sale_engine import SaleKind
from ui.components import k, run_action, table_sale_events


def render(ctx: dict) -> None:
    st.header("Sale Events")
    dep = ctx["dep"]
    if dep is None:
        st.info("Bootstrap or load a ledger from the sidebar first.")
        return
    engine = dep.engine
    admin = Call(ctx["admin_addr"]) if ctx["admin_addr"] else None
    table_sale_events(engine)

    col1, col2 = st.columns(2)

    # ─────────────────────────── Create / tune ────────────────────────────
    with col1:
        st.subheader("Create event")
        kind = st.selectbox("Kind", list(SaleKind), format_func=lambda s: s.name, key=k("events", "kind"))
        max_total = st.number_input("Max total units", min_value=0, value=100, key=k("events", "max_total"))
        per_wallet = st.number_input("Max per wallet", min_value=0, value=2, key=k("events", "per_wallet"))
        price = st.number_input("Unit price (base units)", min_value=0, value=1_000_000, key=k("events", "price"))
        if st.button("Create", disabled=admin is None, key=k("events", "create")):
            run_action(
                dep,
                "Create event",
                lambda: engine.create_sale_event(admin, kind, int(max_total), int(per_wallet), int(price)),
            )

        st.subheader("Tune event")
        event_id = st.number_input("Event id", min_value=0, value=0, key=k("events", "tune_id"))
        field = st.radio("Field", ["max total", "max per wallet", "unit price"], horizontal=True, key=k("events", "field"))
        value = st.number_input("New value", min_value=0, value=0, key=k("events", "tune_value"))
        setter = {
            "max total": engine.set_max_total_units,
            "max per wallet": engine.set_max_units_per_wallet,
            "unit price": engine.set_unit_price,
        }[field]
        if st.button("Apply", disabled=admin is None, key=k("events", "apply")):
            run_action(dep, f"Set {field}", lambda: setter(admin, int(event_id), int(value)))

    # ─────────────────────────── Active set / switches ────────────────────
    with col2:
        st.subheader("Active set")
        st.code(str(engine.active_events))
        act_id = st.number_input("Activate event id", min_value=0, value=0, key=k("events", "act_id"))
        if st.button("Activate", disabled=admin is None, key=k("events", "activate")):
            run_action(dep, "Activate", lambda: engine.activate(admin, int(act_id)))

        position = st.number_input("Deactivate position", min_value=0, value=0, key=k("events", "position"))
        held = engine.active_events[int(position)] if int(position) < len(engine.active_events) else None
        st.caption(f"Position {int(position)} holds event {held}" if held is not None else "Out of range: no-op")
        if st.button("Deactivate", disabled=admin is None, key=k("events", "deactivate")):
            run_action(dep, "Deactivate", lambda: engine.deactivate_at(admin, int(position)))

        st.subheader("Switches")
        s = engine.storage
        sale_on = st.toggle("Global sale active", value=s.sale_active, key=k("events", "sale_on"))
        bot_on = st.toggle("Bot block", value=s.bot_block, key=k("events", "bot_on"))
        if admin is not None and (sale_on != s.sale_active or bot_on != s.bot_block):

            def _switch() -> None:
                engine.set_sale_active(admin, sale_on)
                engine.set_bot_block(admin, bot_on)

            run_action(dep, "Switches", _switch)

    st.markdown("---")

    # ─────────────────────────── Allowlists ───────────────────────────────
    col3, col4 = st.columns(2)
    with col3:
        st.subheader("Merkle root")
        st.caption(f"Current: `{engine.storage.merkle_root.hex()}`")
        root_hex = st.text_input("New root (hex)", key=k("events", "root"))
        if st.button("Replace root", disabled=admin is None or not root_hex, key=k("events", "set_root")):
            run_action(dep, "Merkle root", lambda: engine.set_merkle_root(admin, merkle.parse_root(root_hex)))

    with col4:
        st.subheader("Explicit whitelist")
        wl_event = st.number_input("Event id", min_value=0, value=0, key=k("events", "wl_event"))
        wl_addrs = st.text_area("Addresses (one per line)", key=k("events", "wl_addrs"))
        wl_count = st.number_input("Units each", min_value=1, value=1, key=k("events", "wl_count"))
        addrs = [a.strip() for a in wl_addrs.splitlines() if a.strip()]
        if st.button("Add allowance", disabled=admin is None or not addrs, key=k("events", "wl_add")):
            run_action(
                dep,
                "Whitelist",
                lambda: engine.add_whitelist_batch(admin, addrs, int(wl_event), [int(wl_count)] * len(addrs)),
            )
