from __future__ import annotations

import json
from unittest.mock import Mock

import pytest
from fakes import REJECT_POLICY, RPC_URL, SENDER, SPOKE_BRIDGE, WKESY, FakeNetwork

import kesy_oracle.oracle.main as cli
from kesy_oracle.llm.provider import LLMProvider
from kesy_oracle.oracle.consensus.runtime import LocalDON
from kesy_oracle.oracle.workflow.bridge_simulation import BridgeSimulationWorkflow

SIMULATE = [
    "simulate-bridge",
    "--source",
    "hedera",
    "--dest",
    "sepolia",
    "--amount",
    "100",
    "--sender",
    SENDER,
    "--receiver",
    SENDER,
]


@pytest.fixture(autouse=True)
def _no_log_reconfiguration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda _level: None)


def _bridge_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KESY_BRIDGE_TENDERLY_RPC_URL", RPC_URL)
    monkeypatch.setenv("KESY_BRIDGE_SPOKE_BRIDGE_ADDRESS", SPOKE_BRIDGE)
    monkeypatch.setenv("KESY_BRIDGE_WKESY_ADDRESS", WKESY)
    monkeypatch.setenv("KESY_BRIDGE_REJECT_POLICY_ADDRESS", REJECT_POLICY)


def test_missing_configuration_exits_2(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    for name in (
        "KESY_BRIDGE_TENDERLY_RPC_URL",
        "KESY_BRIDGE_SPOKE_BRIDGE_ADDRESS",
        "KESY_BRIDGE_WKESY_ADDRESS",
        "KESY_BRIDGE_REJECT_POLICY_ADDRESS",
    ):
        monkeypatch.delenv(name, raising=False)

    assert cli.main(SIMULATE) == 2
    assert "Configuration error" in capsys.readouterr().err


def test_simulate_bridge_prints_payload(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    _bridge_env(monkeypatch)
    network = FakeNetwork(lambda *_a: pytest.fail("no network call expected"))

    def workflow(settings):
        return BridgeSimulationWorkflow(
            settings,
            runtime=LocalDON(settings.don, session_factory=network.session_factory),
            provider=Mock(spec=LLMProvider),
        )

    monkeypatch.setattr(cli, "_bridge_workflow", workflow)

    assert cli.main(SIMULATE) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "unsupported"
    assert payload["direction"] == "hedera → sepolia"


def test_workflow_error_status_exits_4(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    _bridge_env(monkeypatch)
    workflow = Mock(spec=BridgeSimulationWorkflow)
    workflow.handle.return_value = {"status": "error", "errorType": "consensus_failure"}
    monkeypatch.setattr(cli, "_bridge_workflow", lambda _settings: workflow)

    assert cli.main(SIMULATE) == 4
    assert json.loads(capsys.readouterr().out)["errorType"] == "consensus_failure"


def test_unexpected_failure_exits_1(monkeypatch: pytest.MonkeyPatch) -> None:
    _bridge_env(monkeypatch)
    workflow = Mock(spec=BridgeSimulationWorkflow)
    workflow.handle.side_effect = RuntimeError("boom")
    monkeypatch.setattr(cli, "_bridge_workflow", lambda _settings: workflow)

    assert cli.main(SIMULATE) == 1
