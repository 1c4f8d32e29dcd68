# tests/test_config.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from algosdk import account, mnemonic

from backend.core.config import Settings, addr_from_mn, fmt_units


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("SALE_STATE_PATH", "/tmp/other.json")
    monkeypatch.setenv("ALGO_UNIT_DECIMALS", "3")
    s = Settings()
    assert s.SALE_STATE_PATH == "/tmp/other.json"
    assert s.ALGO_UNIT_DECIMALS == 3


def test_addr_from_mnemonic():
    key, addr = account.generate_account()
    assert addr_from_mn(mnemonic.from_private_key(key)) == addr
    assert addr_from_mn("") is None
    assert addr_from_mn("not a mnemonic") is None


def test_fmt_units():
    assert fmt_units(1_500_000, 6) == "1.500000"
    assert fmt_units(7, 0) == "7"
