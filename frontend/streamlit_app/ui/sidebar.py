# frontend/streamlit_app/ui/sidebar.py
# SPDX-License-Identifier: Apache-2.0
"""Sidebar composition for the sale operator console.

Collects the two working identities (admin and buyer), shows their simulated
µAlgo balances, and lets the operator pick or bootstrap the ledger state file.

Identities can be typed as addresses or derived from ADMIN_MNEMONIC /
BUYER_MNEMONIC in `.env`. A "Generate" button creates a throwaway buyer
account with algosdk for quick demos.

Returns
-------
`render_sidebar_and_status()` returns a context dictionary containing:
- `dep`: the loaded Deployment, or None.
- `admin_addr`, `buyer_addr`: addresses (or "" when unset).
- `origin_addr`: optional originating account to simulate proxied calls.
"""

from __future__ import annotations

from typing import Any

import streamlit as st
from algosdk import account, encoding

from backend.core.config import addr_from_mn, fmt_units, settings
from core.state import bootstrap, deployment, ensure_defaults
from ui.components import k, short_addr


def _sb_row(label: str, addr: str, balance: int | None) -> None:
    if not addr:
        st.sidebar.write(f"**{label}**: —")
        return
    shown = "n/a" if balance is None else f"{fmt_units(balance, settings.ALGO_UNIT_DECIMALS)} ALGO"
    st.sidebar.write(f"**{label}**  `{short_addr(addr)}`  {shown}")


def _addr_input(label: str, key: str, default: str) -> str:
    value = st.sidebar.text_input(label, value=default, key=k("sidebar", key)).strip()
    if value and not encoding.is_valid_address(value):
        st.sidebar.warning(f"{label}: not a valid Algorand address")
        return ""
    return value


def render_sidebar_and_status() -> dict[str, Any]:
    ensure_defaults()
    ss = st.session_state

    st.sidebar.header("Ledger")
    ss["STATE_PATH"] = st.sidebar.text_input(
        "State file", value=ss["STATE_PATH"], key=k("sidebar", "state_path")
    )
    if st.sidebar.button("Reload from disk", use_container_width=True):
        ss["DEPLOYMENT"] = None

    st.sidebar.header("Accounts")
    admin = _addr_input("Admin address", "admin", addr_from_mn(settings.ADMIN_MNEMONIC) or "")
    if st.sidebar.button("Generate buyer", use_container_width=True):
        _, ss[k("sidebar", "buyer")] = account.generate_account()
    buyer = _addr_input("Buyer address", "buyer", addr_from_mn(settings.BUYER_MNEMONIC) or "")
    origin = _addr_input("Origin (optional, proxied call)", "origin", "")

    dep = deployment()
    if dep is None:
        st.sidebar.info("No sale state yet.")
        with_token = st.sidebar.checkbox("Deploy payment token", value=True)
        if st.sidebar.button("Bootstrap contracts", disabled=not admin, use_container_width=True):
            dep = bootstrap(admin, with_token=with_token)
            st.sidebar.success(f"Engine app #{dep.engine.app_id} deployed")
    else:
        st.sidebar.caption(
            f"Engine #{dep.engine.app_id} · Issuer #{dep.issuer.app_id}"
            + (f" · Token #{dep.token.app_id}" if dep.token else "")
        )

    bal = dep.ledger.balance_of if dep else (lambda _a: None)
    _sb_row("Admin", admin, bal(admin) if admin else None)
    _sb_row("Buyer", buyer, bal(buyer) if buyer else None)

    return {"dep": dep, "admin_addr": admin, "buyer_addr": buyer, "origin_addr": origin}
