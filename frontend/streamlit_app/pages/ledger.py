# frontend/streamlit_app/pages/ledger.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Streamlit page: Ledger

Read-mostly view of the simulated ledger: account balances, badge holdings,
collected proceeds and the notification log. The owner can withdraw the
engine's native or token balance from here.
"""

import streamlit as st

from backend.contracts.runtime import Call
from backend.core.config import fmt_units, settings
from ui.components import k, run_action, short_addr, table_notifications


def render(ctx: dict) -> None:
    st.header("Ledger")
    dep = ctx["dep"]
    if dep is None:
        st.info("Bootstrap or load a ledger from the sidebar first.")
        return
    ledger, engine, issuer, token = dep.ledger, dep.engine, dep.issuer, dep.token

    rows = []
    for addr in sorted(set(ledger.balances) | set(issuer.storage.balances)):
        rows.append(
            {
                "Address": short_addr(addr),
                "ALGO": fmt_units(ledger.balance_of(addr), settings.ALGO_UNIT_DECIMALS),
                "Badges": issuer.balance_of(addr),
                "Token": fmt_units(token.balance_of(addr), token.storage.decimals) if token else "—",
            }
        )
    if rows:
        st.table(rows)
    st.caption(f"Badges minted: {issuer.total_minted:,} (last id {issuer.last_token_id})")

    st.subheader("Withdraw proceeds")
    to = st.text_input("Recipient", value=ctx["admin_addr"], key=k("ledger", "to"))
    c1, c2 = st.columns(2)
    with c1:
        st.metric("Engine ALGO", fmt_units(ledger.balance_of(engine.address), settings.ALGO_UNIT_DECIMALS))
        if st.button("Withdraw ALGO", disabled=not ctx["admin_addr"], key=k("ledger", "w_native")):
            run_action(dep, "Withdraw ALGO", lambda: engine.withdraw_native(Call(ctx["admin_addr"]), to))
    with c2:
        if token is not None:
            st.metric(f"Engine {token.storage.unit_name}", fmt_units(token.balance_of(engine.address), token.storage.decimals))
            if st.button("Withdraw token", disabled=not ctx["admin_addr"], key=k("ledger", "w_token")):
                run_action(dep, "Withdraw token", lambda: engine.withdraw_token(Call(ctx["admin_addr"]), to))

    st.subheader("Notifications (this session)")
    table_notifications(ledger.logs)
