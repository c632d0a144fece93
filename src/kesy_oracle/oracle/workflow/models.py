"""Request-scoped data exchanged between workflow steps.

Nothing here is persisted: every object lives for one invocation only.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..codec import format_units


class BridgeRequest(BaseModel):
    """Inbound simulation request (camelCase on the wire)."""

    source_chain: str = Field(alias="sourceChain", min_length=1)
    dest_chain: str = Field(alias="destChain", min_length=1)
    amount: str = Field(min_length=1, description='Human-readable amount, e.g. "100"')
    sender_address: str = Field(alias="senderAddress", min_length=1)
    receiver_address: str = Field(alias="receiverAddress", min_length=1)

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_as_text(cls, value: object) -> object:
        # JSON clients often send numbers; keep the decimal text exact.
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def direction(self) -> str:
        return f"{self.source_chain} → {self.dest_chain}"


@dataclass(frozen=True, slots=True)
class PreflightResult:
    balance: int
    sender_blacklisted: bool
    receiver_blacklisted: bool
    has_sufficient_balance: bool
    degraded_fields: tuple[str, ...] = ()

    def summary(self, decimals: int) -> dict[str, object]:
        return {
            "balance": format_units(self.balance, decimals),
            "hasSufficientBalance": self.has_sufficient_balance,
            "senderBlacklisted": self.sender_blacklisted,
            "receiverBlacklisted": self.receiver_blacklisted,
        }


@dataclass(frozen=True, slots=True)
class SimulationOutcome:
    """Dry-run result from the sandbox; advisory only."""

    success: bool
    gas_used: int | None
    error_message: str | None
    raw_return_data: str

    def summary(self) -> dict[str, object]:
        return {
            "success": self.success,
            "gasUsed": self.gas_used,
            "errorMessage": self.error_message,
        }


@dataclass(frozen=True, slots=True)
class AnalysisSummary:
    text: str
    degraded: bool
