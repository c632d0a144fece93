from __future__ import annotations

import logging
from typing import Protocol

from kesy_oracle.llm.provider import LLMProvider

from ..codec import format_units
from ..config import LLMConfig
from ..consensus.aggregation import MedianAggregation
from ..consensus.runtime import ConsensusRuntime, NodeContext
from ..errors import ConsensusFailure
from .models import AnalysisSummary, BridgeRequest, PreflightResult, SimulationOutcome

logger = logging.getLogger(__name__)

RAW_EXCERPT_CHARS = 500


def fallback_text(raw: str) -> str:
    return f"Raw AI response: {raw[:RAW_EXCERPT_CHARS]}"


def build_bridge_prompt(
    *,
    request: BridgeRequest,
    preflight: PreflightResult,
    simulation: SimulationOutcome,
    decimals: int,
) -> str:
    balance = format_units(preflight.balance, decimals)
    return f"""You are an AI assistant for the KESY cross-chain bridge system. Analyze this bridge simulation and provide a clear, user-friendly summary.

## Bridge Request
- Direction: {request.direction}
- Amount: {request.amount} KESY ({decimals} decimals)
- Sender: {request.sender_address}
- Receiver: {request.receiver_address}

## Pre-flight Check Results
- Sender wKESY Balance: {balance} wKESY
- Has Sufficient Balance: {str(preflight.has_sufficient_balance).lower()}
- Sender Blacklisted (ACE RejectPolicy): {str(preflight.sender_blacklisted).lower()}
- Receiver Blacklisted (ACE RejectPolicy): {str(preflight.receiver_blacklisted).lower()}

## Bridge Simulation (Tenderly Virtual TestNet)
- Success: {str(simulation.success).lower()}
- Gas estimate: {simulation.gas_used if simulation.gas_used is not None else "unknown"}
- Error: {simulation.error_message or "none"}
Raw result: {simulation.raw_return_data[:RAW_EXCERPT_CHARS]}

## System Context
- This bridge uses Chainlink CCIP for cross-chain messaging
- wKESY is protected by Chainlink ACE (Automated Compliance Engine)
- ACE policies: RejectPolicy (address blacklist) + VolumePolicy (min/max transfer caps)
- The bridge burns wKESY on Sepolia and unlocks native KESY on Hedera via CCIP

## Instructions
1. Summarize whether the bridge would succeed or fail
2. If it would fail, explain exactly why (insufficient balance, blacklisted, policy violation, etc.)
3. Estimate approximate costs (CCIP fee in LINK, gas costs)
4. Provide a confidence level (high/medium/low) for the simulation accuracy
5. If there are any compliance concerns, flag them clearly
6. Keep the response conversational and under 200 words"""


class CognitiveTask(Protocol):
    """A synthesis step (LLM-backed).

    Cognitive tasks are passive: they do not trigger themselves and they do not
    decide workflow transitions. They also never fail the workflow; a degraded
    result is still a result.
    """

    def run(
        self,
        *,
        request: BridgeRequest,
        preflight: PreflightResult,
        simulation: SimulationOutcome,
    ) -> AnalysisSummary: ...


class BridgeRiskAnalysis:
    """Risk/cost narrative for a simulated bridge transfer."""

    def __init__(
        self,
        *,
        provider: LLMProvider,
        runtime: ConsensusRuntime,
        config: LLMConfig,
        decimals: int,
    ) -> None:
        self._provider = provider
        self._runtime = runtime
        self._config = config
        self._decimals = decimals

    def run(
        self,
        *,
        request: BridgeRequest,
        preflight: PreflightResult,
        simulation: SimulationOutcome,
    ) -> AnalysisSummary:
        prompt = build_bridge_prompt(
            request=request, preflight=preflight, simulation=simulation, decimals=self._decimals
        )

        def ask(node: NodeContext) -> str:
            return self._provider.request(
                node.http,
                prompt,
                max_tokens=self._config.max_output_tokens,
                temperature=self._config.temperature,
                timeout=self._config.timeout_seconds,
            )

        try:
            raw = str(self._runtime.run_in_node_mode(ask, MedianAggregation(), step="analysis"))
        except ConsensusFailure as e:
            logger.warning("Analysis degraded: no consensus", extra={"error": str(e)})
            return AnalysisSummary(text=f"AI analysis unavailable: {e}", degraded=True)

        result = self._provider.extract_text(raw)
        if result.ok and result.text is not None:
            return AnalysisSummary(text=result.text, degraded=False)

        logger.warning("Analysis degraded: falling back to raw body", extra={"error": result.error})
        return AnalysisSummary(text=fallback_text(raw), degraded=True)
