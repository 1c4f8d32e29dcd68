# frontend/streamlit_app/app.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

__doc__ = """Badge Sale — Operator Console (Streamlit).

Entrypoint for the operator console over the local sale ledger. It wires up
the page chrome, the sidebar (accounts + state file) and the main tab set.

Tabs (left-to-right order):
  1) Sale Events  — Create/tune events, active set, switches, allowlists.
  2) Purchase     — Preflight and buy as the selected buyer account.
  3) Ledger       — Balances, badge holdings, withdrawals, notification log.

Design notes:
* Sibling packages (ui/, pages/, core/) are imported by adding this directory
  to sys.path; the repository root is added too so `backend.*` resolves from a
  plain checkout.
* The ledger lives in st.session_state and is written back to the state file
  after every successful action (see core/state.py).
"""

# ────────────────────── sys.path bootstrap for local packages ─────────────────
import pathlib
import sys

APP_DIR = pathlib.Path(__file__).resolve().parent
REPO_ROOT = APP_DIR.parents[1]
for p in (APP_DIR, REPO_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))
# ──────────────────────────────────────────────────────────────────────────────

import logging
from typing import Final

import streamlit as st

from backend.core.config import settings
from pages import ledger, purchase, sale_events
from ui.components import configure_page
from ui.sidebar import render_sidebar_and_status

logging.basicConfig(
    level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)-8s: %(message)s"
)

configure_page(title="Badge Sale — Operator Console")

# Sidebar returns a "ctx" dict (admin/buyer addresses, loaded deployment).
ctx: dict = render_sidebar_and_status()

TAB_TITLES: Final[list[str]] = ["Sale Events", "Purchase", "Ledger"]
tab1, tab2, tab3 = st.tabs(TAB_TITLES)

with tab1:
    sale_events.render(ctx)

with tab2:
    purchase.render(ctx)

with tab3:
    ledger.render(ctx)
