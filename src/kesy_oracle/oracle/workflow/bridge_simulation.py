"""Bridge simulation workflow.

Pre-validates and dry-runs a Sepolia -> Hedera KESY transfer and returns an
advisory JSON payload. Nothing here changes chain state.

Steps:
1. validate direction (may stop at ``unsupported_direction``/``unknown_chain``)
2. preflight reads: balance and both RejectPolicy flags
3. dry-run ``bridgeKESY`` against the sandbox (always, even if preflight fails)
4. risk analysis via text generation (never fails the workflow)
5. respond
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import ValidationError

from kesy_oracle.llm.factory import LLMFactory
from kesy_oracle.llm.provider import LLMProvider

from ..chain.rpc import JsonRpcClient
from ..codec import (
    address_rejected_calldata,
    balance_of_calldata,
    bridge_calldata,
    checksum_address,
    decode_bool,
    decode_uint,
    join_fields,
    split_fields,
    to_base_units,
    word_order,
)
from ..config import BridgeSimulationSettings
from ..consensus.aggregation import ERROR_SENTINEL, FieldsAggregation, MedianAggregation
from ..consensus.runtime import ConsensusRuntime, NodeContext
from ..errors import (
    ConsensusFailure,
    RequestValidationError,
    UnknownChainError,
    UnsupportedOperation,
)
from .analysis import BridgeRiskAnalysis, CognitiveTask
from .events import TriggerEvent
from .models import BridgeRequest, PreflightResult, SimulationOutcome
from .state_machine import BridgeSimulationState, WorkflowRun, bridge_run

logger = logging.getLogger(__name__)

PROCEED_WITH_ACTUAL_BRIDGE = "proceed_with_actual_bridge"

UNSUPPORTED_MESSAGE = (
    "Simulation for {src} → EVM bridges is not available yet. The simulation sandbox "
    "cannot model {src}. The bridge would lock KESY on the Hedera hub and mint wKESY on "
    "the destination EVM chain via CCIP. Please proceed with the actual bridge; your "
    "tokens are protected by Chainlink ACE policies on the destination chain."
)

_CALL_OK = "ok"
_CALL_REVERT = "revert"


@dataclass(frozen=True, slots=True)
class BridgePlan:
    """A request that passed validation, with everything the reads need."""

    source_chain: str
    dest_chain: str
    dest_selector: int
    amount_units: int
    sender: str
    receiver: str


@dataclass(frozen=True, slots=True)
class BridgeSimulationOutcome:
    payload: dict[str, object]
    state: BridgeSimulationState
    trace: list[str]


class BridgeSimulationWorkflow:
    """Owns one bridge simulation invocation end to end."""

    def __init__(
        self,
        settings: BridgeSimulationSettings,
        *,
        runtime: ConsensusRuntime,
        provider: LLMProvider | None = None,
        analysis: CognitiveTask | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self._runtime = runtime
        self._clock = clock
        if analysis is None:
            analysis = BridgeRiskAnalysis(
                provider=provider or LLMFactory.create(settings.llm),
                runtime=runtime,
                config=settings.llm,
                decimals=settings.token_decimals,
            )
        self._analysis = analysis

    # -- trigger entry point ----------------------------------------------

    def handle(self, event: TriggerEvent) -> dict[str, object]:
        # An unsupported source short-circuits before any other field is validated.
        source = _chain_name(event.payload.get("sourceChain"))
        try:
            self._check_source(source)
        except UnsupportedOperation as e:
            run = bridge_run()
            run.advance(BridgeSimulationState.UNSUPPORTED_DIRECTION)
            direction = f"{source} → {_chain_name(event.payload.get('destChain'))}"
            return self._finish(run, _unsupported_payload(direction, e)).payload

        try:
            request = BridgeRequest.model_validate(event.payload)
        except ValidationError as e:
            logger.warning("Rejected malformed bridge request", extra={"error": str(e)})
            return _error_payload(
                "validation_error", f"Malformed request: {e.error_count()} invalid field(s)"
            )
        return self.execute(request).payload

    # -- workflow -------------------------------------------------------------

    def execute(self, request: BridgeRequest) -> BridgeSimulationOutcome:
        run = bridge_run()
        logger.info(
            "Bridge simulation triggered",
            extra={
                "direction": request.direction,
                "amount": request.amount,
                "sender": request.sender_address,
                "receiver": request.receiver_address,
            },
        )

        try:
            plan = self.validate(request)
        except UnsupportedOperation as e:
            run.advance(BridgeSimulationState.UNSUPPORTED_DIRECTION)
            return self._finish(run, _unsupported_payload(_direction(request), e))
        except UnknownChainError as e:
            run.advance(BridgeSimulationState.UNKNOWN_CHAIN)
            payload = _error_payload("unknown_chain", str(e))
            payload["supportedChains"] = e.supported
            return self._finish(run, payload)
        except RequestValidationError as e:
            run.advance(BridgeSimulationState.FAILED)
            return self._finish(run, _error_payload("validation_error", str(e)))
        run.advance(BridgeSimulationState.DIRECTION_VALIDATED)

        try:
            preflight = self.preflight(plan)
            run.advance(BridgeSimulationState.PREFLIGHT_CHECKED)
            simulation = self.simulate(plan)
        except ConsensusFailure as e:
            run.advance(BridgeSimulationState.FAILED)
            payload = _error_payload("consensus_failure", str(e))
            payload["step"] = e.step
            return self._finish(run, payload)
        run.advance(BridgeSimulationState.SIMULATED)

        analysis = self._analysis.run(request=request, preflight=preflight, simulation=simulation)
        run.advance(BridgeSimulationState.ANALYZED)
        logger.info("Analysis complete", extra={"degraded": analysis.degraded})

        payload: dict[str, object] = {
            "status": "simulated",
            "direction": request.direction,
            "amount": request.amount,
            "sender": request.sender_address,
            "receiver": request.receiver_address,
            "preflight": preflight.summary(self.settings.token_decimals),
            "simulation": simulation.summary(),
            "aiAnalysis": analysis.text,
            "analysisDegraded": analysis.degraded,
            "timestamp": int(self._clock() * 1000),
        }
        if preflight.degraded_fields:
            payload["degradedChecks"] = list(preflight.degraded_fields)
        run.advance(BridgeSimulationState.RESPONDED)
        return self._finish(run, payload)

    def validate(self, request: BridgeRequest) -> BridgePlan:
        """Resolve chains, amount and addresses without touching the network."""

        src = request.source_chain.strip().lower()
        dst = request.dest_chain.strip().lower()
        selectors = self.settings.chain_selectors
        supported = self.settings.supported_chains

        self._check_source(src)
        if dst not in selectors:
            raise UnknownChainError(
                f"Unknown destination chain: {dst}. Supported: {', '.join(supported)}",
                supported=supported,
            )
        if src not in selectors:
            raise UnknownChainError(
                f"Unknown source chain: {src}. Supported: {', '.join(supported)}",
                supported=supported,
            )

        plan = BridgePlan(
            source_chain=src,
            dest_chain=dst,
            dest_selector=selectors[dst],
            amount_units=to_base_units(request.amount, self.settings.token_decimals),
            sender=checksum_address(request.sender_address),
            receiver=checksum_address(request.receiver_address),
        )
        logger.info("Direction validated", extra={"source": src, "dest": dst})
        return plan

    def _check_source(self, src: str) -> None:
        if src in self.settings.parsed_unsupported_source_chains():
            logger.warning("Simulation not available for source chain", extra={"source": src})
            raise UnsupportedOperation(
                UNSUPPORTED_MESSAGE.format(src=src.capitalize()),
                recommendation=PROCEED_WITH_ACTUAL_BRIDGE,
            )

    def _rpc(self, node: NodeContext) -> JsonRpcClient:
        return JsonRpcClient(
            session=node.http,
            url=self.settings.tenderly_rpc_url,
            timeout=node.timeout,
            block=self.settings.block_tag,
        )

    def preflight(self, plan: BridgePlan) -> PreflightResult:
        s = self.settings
        balance_data = balance_of_calldata(plan.sender)
        sender_data = address_rejected_calldata(plan.sender)
        receiver_data = address_rejected_calldata(plan.receiver)

        def check(node: NodeContext) -> dict[str, str]:
            rpc = self._rpc(node)
            return {
                "balance": rpc.eth_call(to=s.wkesy_address, data=balance_data).as_word(),
                "sender_rejected": rpc.eth_call(
                    to=s.reject_policy_address, data=sender_data
                ).as_word(),
                "receiver_rejected": rpc.eth_call(
                    to=s.reject_policy_address, data=receiver_data
                ).as_word(),
            }

        reduced = self._runtime.run_in_node_mode(
            check,
            FieldsAggregation(
                fields={
                    "balance": MedianAggregation(key=word_order),
                    "sender_rejected": MedianAggregation(key=word_order),
                    "receiver_rejected": MedianAggregation(key=word_order),
                }
            ),
            step="preflight",
        )

        degraded: list[str] = []
        balance = decode_uint(reduced["balance"])
        if balance is None:
            degraded.append("balance")
            balance = 0
        sender_flag = decode_bool(reduced["sender_rejected"])
        if sender_flag is None:
            degraded.append("senderBlacklisted")
        receiver_flag = decode_bool(reduced["receiver_rejected"])
        if receiver_flag is None:
            degraded.append("receiverBlacklisted")

        result = PreflightResult(
            balance=balance,
            sender_blacklisted=bool(sender_flag),
            receiver_blacklisted=bool(receiver_flag),
            has_sufficient_balance=balance >= plan.amount_units,
            degraded_fields=tuple(degraded),
        )
        logger.info(
            "Preflight checked",
            extra={
                "balance": result.balance,
                "required": plan.amount_units,
                "sender_blacklisted": result.sender_blacklisted,
                "receiver_blacklisted": result.receiver_blacklisted,
                "degraded": degraded,
            },
        )
        return result

    def simulate(self, plan: BridgePlan) -> SimulationOutcome:
        s = self.settings
        calldata = bridge_calldata(
            destination_selector=plan.dest_selector,
            receiver=plan.receiver,
            amount=plan.amount_units,
        )

        def dry_run(node: NodeContext) -> dict[str, str]:
            rpc = self._rpc(node)
            reply = rpc.eth_call(
                to=s.spoke_bridge_address,
                data=calldata,
                sender=plan.sender,
                gas=s.simulation_gas,
                request_id=2,
            )
            if reply.ok:
                call = join_fields([_CALL_OK, reply.result])
            elif reply.error == ERROR_SENTINEL:
                call = ERROR_SENTINEL
            else:
                call = join_fields([_CALL_REVERT, reply.error_data or "", reply.error])
            gas = rpc.estimate_gas(
                to=s.spoke_bridge_address, data=calldata, sender=plan.sender, request_id=3
            )
            return {"call": call, "gas": gas.as_word()}

        reduced = self._runtime.run_in_node_mode(
            dry_run,
            FieldsAggregation(
                fields={"call": MedianAggregation(), "gas": MedianAggregation(key=word_order)}
            ),
            step="simulation",
        )
        outcome = _decode_simulation(reduced["call"], reduced["gas"])
        logger.info(
            "Simulation complete",
            extra={"success": outcome.success, "gas_used": outcome.gas_used},
        )
        return outcome

    def _finish(
        self, run: WorkflowRun[BridgeSimulationState], payload: dict[str, object]
    ) -> BridgeSimulationOutcome:
        logger.info(
            "Bridge simulation finished",
            extra={"state": run.state.value, "trace": run.trace(), "status": payload["status"]},
        )
        return BridgeSimulationOutcome(payload=payload, state=run.state, trace=run.trace())


def _decode_simulation(call: str, gas: str) -> SimulationOutcome:
    gas_used = decode_uint(gas)
    if call == ERROR_SENTINEL:
        return SimulationOutcome(
            success=False,
            gas_used=gas_used,
            error_message="Simulation endpoint unavailable",
            raw_return_data=ERROR_SENTINEL,
        )

    kind, rest = split_fields(call, 2)
    if kind == _CALL_OK:
        return SimulationOutcome(
            success=True, gas_used=gas_used, error_message=None, raw_return_data=rest
        )
    data, message = split_fields(rest, 2)
    return SimulationOutcome(
        success=False,
        gas_used=gas_used,
        error_message=message,
        raw_return_data=data,
    )


def _chain_name(value: object) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def _direction(request: BridgeRequest) -> str:
    return f"{_chain_name(request.source_chain)} → {_chain_name(request.dest_chain)}"


def _unsupported_payload(direction: str, e: UnsupportedOperation) -> dict[str, object]:
    return {
        "status": "unsupported",
        "direction": direction,
        "message": str(e),
        "recommendation": e.recommendation,
    }


def _error_payload(error_type: str, message: str) -> dict[str, object]:
    return {"status": "error", "errorType": error_type, "message": message}
