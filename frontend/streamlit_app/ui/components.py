# frontend/streamlit_app/ui/components.py
# SPDX-License-Identifier: Apache-2.0
"""Reusable Streamlit UI components for the sale console.

Currently provided:
  • k(): namespaced widget keys ("<page>:<name>") to avoid duplicate IDs.
  • configure_page(): browser title + wide layout + in-app title.
  • table_sale_events(): catalog overview with active flags.
  • table_notifications(): notification log, newest first.
  • run_action(): execute a contract call, persist, and report the outcome.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import streamlit as st

from backend.contracts.errors import SaleError
from backend.contracts.notifications import Notification
from backend.contracts.sale_engine import SaleEngine
from backend.core.state_store import Deployment
from core.state import persist

# How many characters to show from the start/end of an address when eliding.
_ADDR_PREFIX = 6
_ADDR_SUFFIX = 4


def k(page: str, name: str) -> str:
    """Return a stable widget key namespaced by page."""
    return f"{page}:{name}"


def configure_page(title: str) -> None:
    """Set page config (must run before any other element) and the H1 title."""
    st.set_page_config(page_title=title, layout="wide")
    st.title(f"🎟️ {title}")


def short_addr(addr: str, *, prefix: int = _ADDR_PREFIX, suffix: int = _ADDR_SUFFIX) -> str:
    """"ABCD12…WXYZ" for a 58-char address; "—" for empty input."""
    if not addr:
        return "—"
    if len(addr) <= prefix + suffix + 1:
        return addr
    return f"{addr[:prefix]}…{addr[-suffix:]}"


def table_sale_events(engine: SaleEngine) -> None:
    if not engine.event_count:
        st.info("No sale events yet. Create one below.")
        return
    rows = []
    for event_id in range(engine.event_count):
        e = engine.sale_event(event_id)
        rows.append(
            {
                "Id": event_id,
                "Kind": e.kind.name,
                "Sold": f"{e.current_total_units:,} / {e.max_total_units:,}",
                "Per wallet": e.max_units_per_address,
                "Unit price": f"{e.unit_price:,}",
                "Active": "✅" if engine.is_active(event_id) else "—",
            }
        )
    st.table(rows)


def table_notifications(logs: Sequence[Notification], limit: int = 50) -> None:
    if not logs:
        st.info("No notifications in this session yet.")
        return
    rows = []
    for n in list(logs)[-limit:][::-1]:
        fields = n.to_dict()
        name = fields.pop("event")
        detail = ", ".join(
            f"{key}={short_addr(v) if isinstance(v, str) and len(v) == 58 else v}"
            for key, v in fields.items()
        )
        rows.append({"Notification": name, "Detail": detail})
    st.table(rows)


def run_action(dep: Deployment, label: str, fn: Callable[[], Any]) -> Any:
    """Run one contract call; persist on success, st.error on rejection."""
    try:
        result = fn()
    except (SaleError, ValueError) as e:
        st.error(f"{label} failed: {e}")
        return None
    persist(dep)
    st.success(f"{label}: OK" if result is None else f"{label}: {result}")
    return result
