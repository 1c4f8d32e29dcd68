# frontend/streamlit_app/pages/purchase.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Streamlit page: Purchase

Buyer-side flows against the sale engine:
  • Faucet top-up (simulated µAlgos) and payment-token approve
  • Preflight: list every failing check, in purchase order, without effects
  • Buy: plain / explicit-whitelist via `purchase`, Merkle kinds via
    `purchase_with_proof` (proof pasted as hex, one node per line)

Set "Origin" in the sidebar to simulate a proxied call; with bot block on,
such purchases are rejected.
"""

import streamlit as st

from backend.contracts import merkle
from backend.contracts.runtime import Call
from backend.contracts.sale_engine import MERKLE_KINDS, TOKEN_KINDS
from ui.components import k, run_action


def render(ctx: dict) -> None:
    st.header("Purchase")
    dep = ctx["dep"]
    buyer = ctx["buyer_addr"]
    if dep is None:
        st.info("Bootstrap or load a ledger from the sidebar first.")
        return
    if not buyer:
        st.info("Set or generate a buyer address in the sidebar.")
        return
    engine, token = dep.engine, dep.token

    # ─────────────────────────── Funding ──────────────────────────────────
    col = st.columns(3)
    with col[0]:
        amount = st.number_input("Faucet µAlgos", min_value=1, value=5_000_000, key=k("buy", "faucet"))
        if st.button("Fund buyer", use_container_width=True, key=k("buy", "fund")):
            run_action(dep, "Fund", lambda: dep.ledger.fund(buyer, int(amount)))
    with col[1]:
        if token is not None:
            tok_amt = st.number_input("Mint tokens (admin)", min_value=1, value=10_000_000, key=k("buy", "tok_mint"))
            if st.button("Mint to buyer", disabled=not ctx["admin_addr"], use_container_width=True, key=k("buy", "mint")):
                run_action(dep, "Mint tokens", lambda: token.mint(Call(ctx["admin_addr"]), buyer, int(tok_amt)))
    with col[2]:
        if token is not None:
            approve_amt = st.number_input("Approve engine", min_value=0, value=10_000_000, key=k("buy", "approve_amt"))
            if st.button("Approve", use_container_width=True, key=k("buy", "approve")):
                run_action(dep, "Approve", lambda: token.approve(Call(buyer), engine.address, int(approve_amt)))
            st.caption(f"Allowance: {token.allowance(buyer, engine.address):,}")

    st.markdown("---")

    # ─────────────────────────── Order ────────────────────────────────────
    if not engine.event_count:
        st.info("No sale events yet.")
        return
    event_id = st.selectbox("Event", list(range(engine.event_count)), key=k("buy", "event"))
    event = engine.sale_event(event_id)
    count = st.number_input("Count", min_value=0, value=1, key=k("buy", "count"))
    cost = event.unit_price * int(count)
    pays_native = event.kind not in TOKEN_KINDS
    value = st.number_input(
        "Attached µAlgos", min_value=0, value=cost if pays_native else 0, key=k("buy", "value")
    )
    proof_text = ""
    if event.kind in MERKLE_KINDS:
        proof_text = st.text_area("Merkle proof (hex, one node per line)", key=k("buy", "proof"))
    st.caption(
        f"{event.kind.name} · price {event.unit_price:,} · bought so far "
        f"{engine.purchased(buyer, event_id)} / {event.max_units_per_address} · "
        f"whitelist left {engine.whitelist_allowance(buyer, event_id)}"
    )

    try:
        proof = merkle.parse_proof(proof_text.splitlines())
    except ValueError as e:
        st.error(f"Bad proof: {e}")
        return
    call = Call(sender=buyer, origin=ctx["origin_addr"] or None, value=int(value))

    b1, b2 = st.columns(2)
    with b1:
        if st.button("Preflight", use_container_width=True, key=k("buy", "preflight")):
            problems = engine.preflight(call, event.kind, event_id, int(count), proof)
            if problems:
                for p in problems:
                    st.warning(f"{p.reason}: {p.detail}" if p.detail else p.reason)
            else:
                st.success("Eligible")
    with b2:
        if st.button("Buy", type="primary", use_container_width=True, key=k("buy", "go")):
            if event.kind in MERKLE_KINDS:
                action = lambda: engine.purchase_with_proof(call, event.kind, event_id, int(count), proof)  # noqa: E731
            else:
                action = lambda: engine.purchase(call, event.kind, event_id, int(count))  # noqa: E731
            last = run_action(dep, "Purchase", action)
            if last is not None:
                st.balloons()
