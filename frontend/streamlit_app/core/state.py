# frontend/streamlit_app/core/state.py
# SPDX-License-Identifier: Apache-2.0
"""
Session-scoped state for the sale operator console.

The console works on one `Deployment` (ledger + issuer + engine + token)
kept in `st.session_state["DEPLOYMENT"]`. It is loaded from the state file on
first render and written back after every successful action, so the CLI and
the console can be used side by side.

Usage
-----
    from core.state import ensure_defaults, deployment, persist
    ensure_defaults()
    dep = deployment()
    ...
    persist(dep)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Final

import streamlit as st

from backend.core import state_store
from backend.core.config import settings
from backend.core.state_store import Deployment

log = logging.getLogger(__name__)

DEFAULTS: Final[Mapping[str, Any]] = {
    # Path of the JSON ledger shared with backend/scripts/sale_cli.py.
    "STATE_PATH": settings.SALE_STATE_PATH,
    # Loaded deployment (None until bootstrapped or loaded).
    "DEPLOYMENT": None,
}

__all__ = ["DEFAULTS", "ensure_defaults", "deployment", "persist", "bootstrap"]


def ensure_defaults() -> None:
    """Ensure expected session keys exist; existing values are preserved."""
    for key, default_value in DEFAULTS.items():
        st.session_state.setdefault(key, default_value)


def deployment() -> Deployment | None:
    """Return the session deployment, loading it from disk on first access."""
    ss = st.session_state
    if ss.get("DEPLOYMENT") is None:
        try:
            ss["DEPLOYMENT"] = state_store.load_ledger(ss["STATE_PATH"])
        except FileNotFoundError:
            return None
    return ss["DEPLOYMENT"]


def bootstrap(owner: str, with_token: bool = True) -> Deployment:
    dep = state_store.bootstrap(owner, with_token=with_token)
    st.session_state["DEPLOYMENT"] = dep
    persist(dep)
    return dep


def persist(dep: Deployment) -> None:
    state_store.save_ledger(dep, st.session_state["STATE_PATH"])
    log.debug("Console saved state to %s", st.session_state["STATE_PATH"])
