# tests/test_sale_cli.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import json

import pytest

from backend.core.config import Settings
from backend.scripts import sale_cli
from conftest import build_tree, new_address


@pytest.fixture
def cli(tmp_path, owner):
    state = str(tmp_path / "sale_state.json")

    def run(*argv: str, sender: str = owner) -> dict:
        return sale_cli.run(["--state", state, "--sender", sender, *argv])

    run("init")
    return run


def test_init_refuses_to_overwrite(cli):
    with pytest.raises(SystemExit, match="--force"):
        cli("init")
    assert cli("init", "--force")["command"] == "init"


def test_native_sale_flow(cli, owner, alice):
    created = cli(
        "create-event", "--kind", "plain-native",
        "--max-total", "100", "--max-per-wallet", "2", "--price", "1000",
    )
    assert created["result"]["kind"] == "PLAIN_NATIVE"
    assert created["notifications"][0]["event"] == "SaleCreated"
    cli("activate", "--event", "0")
    assert cli("toggle", "--sale", "on")["result"] == {"sale_active": True, "bot_block": False}
    cli("fund", "--addr", alice, "--amount", "5000")

    bought = cli(
        "buy", "--kind", "plain-native", "--event", "0", "--count", "2", "--value", "2000",
        sender=alice,
    )
    assert bought["result"]["last_token_id"] == 2
    assert bought["result"]["purchased"] == 2
    assert [n["event"] for n in bought["notifications"]] == ["BadgeMinted"]

    with pytest.raises(SystemExit, match="buy failed: PerWalletLimitExceeded"):
        cli("buy", "--kind", "plain-native", "--event", "0", "--count", "1", "--value", "1000", sender=alice)

    status = cli("status", "--addr", alice)["result"]
    assert status["account"]["badges"] == 2
    assert status["account"]["balance"] == 3000
    assert status["engine_balance"] == 2000

    withdrawn = cli("withdraw", "--to", owner)["result"]
    assert withdrawn == {"to": owner, "amount": 2000, "token": False}


def test_failed_command_does_not_persist(cli, alice):
    cli("create-event", "--kind", "plain-native", "--max-total", "1", "--max-per-wallet", "1", "--price", "0")
    with pytest.raises(SystemExit, match="Unauthorized"):
        cli("activate", "--event", "0", sender=alice)
    assert cli("status")["result"]["active"] == []


def test_preflight_reports_without_saving(cli, alice):
    cli("create-event", "--kind", "whitelist-native", "--max-total", "5", "--max-per-wallet", "5", "--price", "0")
    cli("activate", "--event", "0")

    report = cli("preflight", "--kind", "whitelist-native", "--event", "0", "--count", "1", sender=alice)
    assert report["result"]["eligible"] is False
    assert [p["reason"] for p in report["result"]["problems"]] == [
        "SaleSuspended",
        "WhitelistAllowanceExceeded",
    ]

    cli("toggle", "--sale", "on")
    cli("whitelist", "--event", "0", "--addr", alice, "--count", "1")
    report = cli("preflight", "--kind", "whitelist-native", "--event", "0", "--count", "1", sender=alice)
    assert report["result"] == {"eligible": True, "problems": []}


def test_deactivate_by_event_resolves_position(cli):
    for event_id in ("1", "2", "1"):
        cli("activate", "--event", event_id)
    result = cli("deactivate", "--event", "2")["result"]
    assert result == {"position": 1, "active": [1, 1]}
    with pytest.raises(SystemExit, match="not in the active set"):
        cli("deactivate", "--event", "7")


def test_merkle_and_token_purchase(cli, alice):
    root, proofs = build_tree([alice, new_address()])
    cli("create-event", "--kind", "merkle-token", "--max-total", "10", "--max-per-wallet", "2", "--price", "5")
    cli("activate", "--event", "0")
    cli("toggle", "--sale", "on")
    cli("merkle-root", "--root", root.hex())
    cli("mint-token", "--to", alice, "--amount", "100")
    assert cli("approve", "--amount", "10", sender=alice)["result"]["allowance"] == 10

    proof_args = [arg for node in proofs[alice] for arg in ("--proof", node.hex())]
    bought = cli("buy", "--kind", "merkle-token", "--event", "0", "--count", "2", *proof_args, sender=alice)

    events = [n["event"] for n in bought["notifications"]]
    assert events == ["Transfer", "BadgeMinted"]


def test_main_prints_json(tmp_path, owner, capsys):
    state = str(tmp_path / "s.json")
    sale_cli.main(["--state", state, "--sender", owner, "init", "--no-token"])
    out = json.loads(capsys.readouterr().out)
    assert out["result"]["token"] is None
    assert out["result"]["engine"]["app_id"] == 1002


def test_missing_sender_without_env(tmp_path, monkeypatch):
    monkeypatch.setattr(sale_cli, "settings", Settings(ADMIN_MNEMONIC=""))
    with pytest.raises(SystemExit, match="ADMIN_MNEMONIC"):
        sale_cli.run(["--state", str(tmp_path / "x.json"), "init"])
