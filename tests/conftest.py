"""Test configuration and fixtures."""

from __future__ import annotations

import pytest
from fakes import (
    FORWARDER_URL,
    MIRROR_URL,
    RECEIVER,
    REJECT_POLICY,
    RPC_URL,
    SENDER,
    SPOKE_BRIDGE,
    TOKEN_ID,
    WKESY,
)

from kesy_oracle.oracle.config import (
    BridgeSimulationSettings,
    ComplianceSyncSettings,
    LLMConfig,
    NodeConfig,
)


@pytest.fixture
def node_config() -> NodeConfig:
    return NodeConfig(node_count=4, request_timeout_seconds=5.0)


@pytest.fixture
def llm_config() -> LLMConfig:
    """Provide a test LLM configuration."""
    return LLMConfig(provider="openai", openai_api_key="test-key", openai_model="gpt-4o-mini")


@pytest.fixture
def bridge_settings(node_config: NodeConfig, llm_config: LLMConfig) -> BridgeSimulationSettings:
    return BridgeSimulationSettings(
        tenderly_rpc_url=RPC_URL,
        spoke_bridge_address=SPOKE_BRIDGE,
        wkesy_address=WKESY,
        reject_policy_address=REJECT_POLICY,
        don=node_config,
        llm=llm_config,
    )


@pytest.fixture
def compliance_settings(node_config: NodeConfig) -> ComplianceSyncSettings:
    return ComplianceSyncSettings(
        hedera_mirror_url=MIRROR_URL,
        hedera_kesy_token_id=TOKEN_ID,
        reject_policy_address=REJECT_POLICY,
        forwarder_url=FORWARDER_URL,
        don=node_config,
    )


@pytest.fixture
def bridge_request() -> dict[str, object]:
    return {
        "sourceChain": "sepolia",
        "destChain": "hedera",
        "amount": "100",
        "senderAddress": SENDER,
        "receiverAddress": RECEIVER,
    }
