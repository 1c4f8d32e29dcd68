# backend/core/config.py
# SPDX-License-Identifier: Apache-2.0
"""
Centralized, immutable configuration for the sale engine tooling.

A frozen `Settings` dataclass is populated from environment variables (loaded
via python-dotenv if a `.env` file is present). The CLI and the Streamlit
console import the `settings` singleton instead of calling `os.getenv`.

Security notes
--------------
- Mnemonics are for local simulation and TestNet demos only. Never commit
  real secrets into `.env`.

Testing
-------
- Set environment variables before importing this module, or construct a
  fresh `Settings()` after monkeypatching the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from algosdk import account, mnemonic
from dotenv import load_dotenv

# Pre-set env vars take precedence over `.env` (override=False).
load_dotenv()


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default)


@dataclass(frozen=True)
class Settings:
    """Immutable settings; see `.env.example` for a template."""

    # --- Persistence ---------------------------------------------------------
    # JSON file holding the ledger (balances, deployed contracts) between runs.
    SALE_STATE_PATH: str = field(default_factory=lambda: _env("SALE_STATE_PATH", "sale_state.json"))

    # --- Logging -------------------------------------------------------------
    LOG_LEVEL: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))

    # --- Accounts (25-word mnemonics; optional) ------------------------------
    ADMIN_MNEMONIC: str = field(default_factory=lambda: _env("ADMIN_MNEMONIC"))
    BUYER_MNEMONIC: str = field(default_factory=lambda: _env("BUYER_MNEMONIC"))

    # --- Display -------------------------------------------------------------
    # Decimal places of the native unit (microAlgos → ALGO).
    ALGO_UNIT_DECIMALS: int = field(default_factory=lambda: int(_env("ALGO_UNIT_DECIMALS", "6")))


def addr_from_mn(mn: str | None) -> str | None:
    """Derive an Algorand address from a 25-word mnemonic (or None on bad input)."""
    if not mn:
        return None
    try:
        return account.address_from_private_key(mnemonic.to_private_key(mn))
    except Exception:
        return None


def fmt_units(amount: int, decimals: int) -> str:
    """Format integer base units with `decimals` places."""
    if decimals <= 0:
        return str(amount)
    whole, frac = divmod(amount, 10**decimals)
    return f"{whole}.{frac:0{decimals}d}"


# Singleton settings object imported by consumers.
settings = Settings()
