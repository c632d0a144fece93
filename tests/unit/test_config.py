"""Unit tests for configuration."""

import pytest
from pydantic import ValidationError

from kesy_oracle.oracle.config import (
    DEFAULT_CHAIN_SELECTORS,
    BridgeSimulationSettings,
    ComplianceSyncSettings,
    LLMConfig,
    NodeConfig,
)
from kesy_oracle.server.config import ServerSettings


def test_llm_config_defaults() -> None:
    """Test LLM config default values."""
    config = LLMConfig()

    assert config.provider == "gemini"
    assert config.temperature == 0.3
    assert config.max_output_tokens == 512


def test_bridge_settings_require_endpoints(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("KESY_BRIDGE_TENDERLY_RPC_URL", raising=False)

    with pytest.raises(ValidationError, match="KESY_BRIDGE_TENDERLY_RPC_URL"):
        BridgeSimulationSettings(
            spoke_bridge_address="0x1",
            wkesy_address="0x2",
            reject_policy_address="0x3",
            _env_file=None,
        )


def test_bridge_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KESY_BRIDGE_TENDERLY_RPC_URL", "https://rpc.test")
    monkeypatch.setenv("KESY_BRIDGE_SPOKE_BRIDGE_ADDRESS", "0x1")
    monkeypatch.setenv("KESY_BRIDGE_WKESY_ADDRESS", "0x2")
    monkeypatch.setenv("KESY_BRIDGE_REJECT_POLICY_ADDRESS", "0x3")
    monkeypatch.setenv("KESY_BRIDGE_AUTHORIZED_SIGNERS", " 0xAbC , ,0xdef")
    monkeypatch.setenv("KESY_DON_NODE_COUNT", "7")

    settings = BridgeSimulationSettings(_env_file=None)

    assert settings.tenderly_rpc_url == "https://rpc.test"
    assert settings.parsed_authorized_signers() == ["0xabc", "0xdef"]
    assert settings.parsed_unsupported_source_chains() == {"hedera"}
    assert settings.chain_selectors == DEFAULT_CHAIN_SELECTORS
    assert settings.supported_chains == ["sepolia", "hedera"]
    assert settings.don.node_count == 7
    assert settings.don.quorum == 4


def test_settings_are_frozen(bridge_settings: BridgeSimulationSettings) -> None:
    with pytest.raises(ValidationError):
        bridge_settings.token_decimals = 18  # type: ignore[misc]


def test_compliance_settings_defaults(compliance_settings: ComplianceSyncSettings) -> None:
    assert compliance_settings.schedule == "*/30 * * * * *"
    assert compliance_settings.balance_page_limit == 10
    assert compliance_settings.sepolia_chain_selector == DEFAULT_CHAIN_SELECTORS["sepolia"]
    assert compliance_settings.gas_limit == 200_000


def test_compliance_settings_require_forwarder(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("KESY_COMPLIANCE_FORWARDER_URL", raising=False)

    with pytest.raises(ValidationError, match="KESY_COMPLIANCE_FORWARDER_URL"):
        ComplianceSyncSettings(
            hedera_kesy_token_id="0.0.1",
            reject_policy_address="0x3",
            _env_file=None,
        )


def test_node_config_rejects_zero_nodes() -> None:
    with pytest.raises(ValidationError):
        NodeConfig(node_count=0)


def test_server_settings_cors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KESY_SERVER_CORS_ORIGINS", "http://a.test, http://b.test")

    settings = ServerSettings(_env_file=None)

    assert settings.port == 8080
    assert settings.parsed_cors_origins() == ["http://a.test", "http://b.test"]


def test_chain_selector_names_are_lowercased(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KESY_BRIDGE_CHAIN_SELECTORS", '{"Sepolia": 1, " HEDERA ": 2}')

    settings = BridgeSimulationSettings(
        tenderly_rpc_url="https://rpc.test",
        spoke_bridge_address="0x1",
        wkesy_address="0x2",
        reject_policy_address="0x3",
        _env_file=None,
    )

    assert settings.chain_selectors == {"sepolia": 1, "hedera": 2}
    assert settings.supported_chains == ["sepolia", "hedera"]


def test_bridge_settings_only_carry_contracts_the_workflow_reads() -> None:
    addresses = {
        name for name in BridgeSimulationSettings.model_fields if name.endswith("_address")
    }

    assert addresses == {"spoke_bridge_address", "wkesy_address", "reject_policy_address"}
