"""Configuration for the oracle workflows.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Every settings object is frozen once constructed. Workflows receive their
settings explicitly and never read the environment themselves, so one object
is safely shared by all concurrent node-local executions.

Each workflow has its own settings class (and env prefix) so the HTTP trigger
can start without compliance-sync credentials and vice versa.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# CCIP chain selectors for the chains the bridge connects.
DEFAULT_CHAIN_SELECTORS: dict[str, int] = {
    "sepolia": 16015286601757825753,
    "hedera": 222782988166878823,
}


def _split_csv(value: str) -> list[str]:
    return [part.strip().lower() for part in value.split(",") if part.strip()]


class LLMConfig(BaseSettings):
    """Configuration for the text-generation provider."""

    provider: Literal["gemini", "openai"] = Field(
        default="gemini",
        description="Text-generation provider used for the risk analysis step",
    )

    gemini_api_key: str = Field(default="", description="Gemini API key")
    gemini_model: str = Field(default="gemini-2.0-flash", description="Gemini model id")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API base URL",
    )

    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI model to use")

    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=512, gt=0)
    timeout_seconds: float = Field(default=30.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="KESY_LLM_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )


class NodeConfig(BaseSettings):
    """Shape of the oracle network each step fans out to."""

    node_count: int = Field(default=4, gt=0, description="Participating oracle nodes")
    min_responses: int | None = Field(
        default=None,
        gt=0,
        description="Agreeing responses required per step (default: simple majority)",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-call HTTP timeout applied inside node-local closures",
    )
    max_workers: int | None = Field(default=None, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="KESY_DON_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @model_validator(mode="after")
    def _quorum_fits_network(self) -> NodeConfig:
        if self.min_responses is not None and self.min_responses > self.node_count:
            raise ValueError("KESY_DON_MIN_RESPONSES cannot exceed KESY_DON_NODE_COUNT")
        return self

    @property
    def quorum(self) -> int:
        """Responses needed for a step to reduce."""

        if self.min_responses is not None:
            return self.min_responses
        return self.node_count // 2 + 1


class BridgeSimulationSettings(BaseSettings):
    """Settings for the HTTP-triggered bridge simulation workflow.

    Environment variables (prefix ``KESY_BRIDGE_``):
    - KESY_BRIDGE_TENDERLY_RPC_URL
    - KESY_BRIDGE_SPOKE_BRIDGE_ADDRESS
    - KESY_BRIDGE_WKESY_ADDRESS
    - KESY_BRIDGE_REJECT_POLICY_ADDRESS
    - KESY_BRIDGE_AUTHORIZED_SIGNERS (optional, comma-separated EVM addresses)
    """

    tenderly_rpc_url: str = Field(
        default="", description="Fork/sandbox JSON-RPC endpoint used for simulation"
    )

    spoke_bridge_address: str = Field(default="", description="Sepolia spoke bridge")
    wkesy_address: str = Field(default="", description="wKESY token on Sepolia")
    reject_policy_address: str = Field(default="", description="ACE RejectPolicy")

    authorized_signers: str = Field(
        default="",
        description=(
            "Comma-separated EVM addresses allowed to trigger a simulation. "
            "Empty disables request signature checks."
        ),
    )

    chain_selectors: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_CHAIN_SELECTORS),
        description="Static chain-name -> CCIP selector table",
    )
    unsupported_source_chains: str = Field(
        default="hedera",
        description="Comma-separated source chains the sandbox cannot model",
    )

    token_decimals: int = Field(default=6, ge=0, le=36)
    simulation_gas: int = Field(default=500_000, gt=0, description="Gas cap for the dry run")
    block_tag: str = Field(default="latest", description="Block the reads are pinned to")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    don: NodeConfig = Field(default_factory=NodeConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)

    model_config = SettingsConfigDict(
        env_prefix="KESY_BRIDGE_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @field_validator("chain_selectors")
    @classmethod
    def _lowercase_chain_names(cls, value: dict[str, int]) -> dict[str, int]:
        # Request chains are compared lower-cased.
        return {name.strip().lower(): selector for name, selector in value.items()}

    @model_validator(mode="after")
    def _require_endpoints(self) -> BridgeSimulationSettings:
        required = {
            "KESY_BRIDGE_TENDERLY_RPC_URL": self.tenderly_rpc_url,
            "KESY_BRIDGE_SPOKE_BRIDGE_ADDRESS": self.spoke_bridge_address,
            "KESY_BRIDGE_WKESY_ADDRESS": self.wkesy_address,
            "KESY_BRIDGE_REJECT_POLICY_ADDRESS": self.reject_policy_address,
        }
        missing = [name for name, value in required.items() if not value.strip()]
        if missing:
            raise ValueError(f"Missing required settings: {', '.join(missing)}")
        if not self.chain_selectors:
            raise ValueError("KESY_BRIDGE_CHAIN_SELECTORS must not be empty")
        return self

    def parsed_authorized_signers(self) -> list[str]:
        return _split_csv(self.authorized_signers)

    def parsed_unsupported_source_chains(self) -> set[str]:
        return set(_split_csv(self.unsupported_source_chains))

    @property
    def supported_chains(self) -> list[str]:
        return list(self.chain_selectors)


class ComplianceSyncSettings(BaseSettings):
    """Settings for the cron-triggered compliance sync workflow.

    Environment variables (prefix ``KESY_COMPLIANCE_``):
    - KESY_COMPLIANCE_SCHEDULE
    - KESY_COMPLIANCE_HEDERA_MIRROR_URL
    - KESY_COMPLIANCE_HEDERA_KESY_TOKEN_ID
    - KESY_COMPLIANCE_REJECT_POLICY_ADDRESS
    - KESY_COMPLIANCE_FORWARDER_URL
    """

    schedule: str = Field(
        default="*/30 * * * * *",
        description="Cron schedule; six fields means seconds come first",
    )

    hedera_mirror_url: str = Field(default="https://testnet.mirrornode.hedera.com")
    hedera_kesy_token_id: str = Field(default="", description='e.g. "0.0.7228099"')
    balance_page_limit: int = Field(default=10, gt=0, le=100)

    sepolia_chain_selector: int = Field(default=DEFAULT_CHAIN_SELECTORS["sepolia"])
    reject_policy_address: str = Field(default="", description="ACE RejectPolicy on Sepolia")
    forwarder_url: str = Field(
        default="", description="Report forwarder endpoint used to write reports on-chain"
    )
    gas_limit: int = Field(default=200_000, gt=0)

    address_overrides: dict[str, str] = Field(
        default_factory=dict,
        description="Hedera account id -> EVM address, for accounts with an ECDSA alias",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    don: NodeConfig = Field(default_factory=NodeConfig)

    model_config = SettingsConfigDict(
        env_prefix="KESY_COMPLIANCE_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @model_validator(mode="after")
    def _require_endpoints(self) -> ComplianceSyncSettings:
        required = {
            "KESY_COMPLIANCE_HEDERA_KESY_TOKEN_ID": self.hedera_kesy_token_id,
            "KESY_COMPLIANCE_REJECT_POLICY_ADDRESS": self.reject_policy_address,
            "KESY_COMPLIANCE_FORWARDER_URL": self.forwarder_url,
        }
        missing = [name for name, value in required.items() if not value.strip()]
        if missing:
            raise ValueError(f"Missing required settings: {', '.join(missing)}")
        return self
