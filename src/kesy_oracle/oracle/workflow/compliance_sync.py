"""Compliance sync workflow.

Polls the Hedera Mirror Node for KESY accounts that look frozen and
propagates them to the Sepolia ACE RejectPolicy.

Flow:
  1. Cron tick triggers the workflow
  2. Each node fetches the zero-balance listing; accounts are agreed by majority
  3. No accounts: stop, "No updates needed"
  4. Otherwise: one rejectAddress call per account, batched into one signed
     report, delivered once

Known limitation: zero balance is used as the freeze signal. The balances
listing does not carry ``freeze_status``; a frozen account with a balance is
missed and an emptied account is rejected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import requests

from ..chain.delivery import DeliveryClient, DeliveryOutcome, DeliveryStatus
from ..chain.mirror import AddressResolver, ComplianceEvent, MirrorNodeClient
from ..codec import (
    encode_call_batch,
    join_fields,
    reject_address_calldata,
    unreject_address_calldata,
)
from ..config import ComplianceSyncSettings
from ..consensus.aggregation import (
    ERROR_SENTINEL,
    FieldsAggregation,
    MajorityAggregation,
    MedianAggregation,
)
from ..consensus.report import ReportSigner, SignedReport
from ..consensus.runtime import ConsensusRuntime, NodeContext
from ..errors import ConsensusFailure, RequestValidationError, UpstreamCallError
from .events import TriggerEvent
from .state_machine import ComplianceSyncState, WorkflowRun, compliance_run

logger = logging.getLogger(__name__)

NO_UPDATES_NEEDED = "No updates needed"

_ACCOUNT_SEPARATOR = ","


@dataclass(frozen=True, slots=True)
class ComplianceSyncResult:
    state: ComplianceSyncState
    summary: str
    events: list[ComplianceEvent] = field(default_factory=list)
    report: SignedReport | None = None
    delivery: DeliveryOutcome | None = None
    trace: list[str] = field(default_factory=list)

    @property
    def updated(self) -> bool:
        return self.state == ComplianceSyncState.POLICY_UPDATE_SUBMITTED


class ComplianceSyncWorkflow:
    """Owns one compliance sync invocation end to end."""

    def __init__(
        self,
        settings: ComplianceSyncSettings,
        *,
        runtime: ConsensusRuntime,
        signer: ReportSigner,
        delivery: DeliveryClient,
        resolver: AddressResolver,
    ) -> None:
        self.settings = settings
        self._runtime = runtime
        self._signer = signer
        self._delivery = delivery
        self._resolver = resolver

    def handle(self, event: TriggerEvent) -> str:
        logger.info("Compliance sync triggered", extra={"trigger": event.type})
        return self.execute().summary

    def execute(self) -> ComplianceSyncResult:
        run = compliance_run()
        s = self.settings
        logger.info(
            "Compliance sync started",
            extra={
                "mirror": s.hedera_mirror_url,
                "token": s.hedera_kesy_token_id,
                "reject_policy": s.reject_policy_address,
            },
        )

        try:
            events = self.fetch_events()
        except ConsensusFailure as e:
            run.advance(ComplianceSyncState.FAILED)
            return self._finish(run, f"Consensus failure: {e}")
        except UpstreamCallError as e:
            run.advance(ComplianceSyncState.FAILED)
            return self._finish(run, f"Failed: {e}")
        run.advance(ComplianceSyncState.EVENTS_FETCHED)
        logger.info("Found potentially frozen accounts", extra={"count": len(events)})

        if not events:
            run.advance(ComplianceSyncState.NO_UPDATE_NEEDED)
            return self._finish(run, NO_UPDATES_NEEDED)

        try:
            payload = self.encode_policy_update(events)
        except RequestValidationError as e:
            run.advance(ComplianceSyncState.FAILED)
            return self._finish(run, f"Failed: {e}", events=events)

        report = self._signer.sign(payload)
        logger.info("Signed report generated", extra={"digest": report.digest})

        outcome = self._delivery.deliver(
            report, receiver=s.reject_policy_address, gas_limit=s.gas_limit
        )
        run.advance(ComplianceSyncState.POLICY_UPDATE_SUBMITTED)
        return self._finish(
            run,
            _delivery_summary(outcome),
            events=events,
            report=report,
            delivery=outcome,
        )

    def fetch_events(self) -> list[ComplianceEvent]:
        s = self.settings

        def poll(node: NodeContext) -> dict[str, str]:
            mirror = MirrorNodeClient(
                session=node.http, base_url=s.hedera_mirror_url, timeout=node.timeout
            )
            try:
                snapshot = mirror.zero_balance_accounts(
                    token_id=s.hedera_kesy_token_id, limit=s.balance_page_limit
                )
            except (requests.RequestException, ValueError) as e:
                node.log.warning("Mirror node query failed", extra={"error": str(e)})
                return {"accounts": ERROR_SENTINEL, "timestamp": ERROR_SENTINEL}
            return {
                "accounts": join_fields(snapshot.accounts, sep=_ACCOUNT_SEPARATOR),
                "timestamp": snapshot.timestamp,
            }

        reduced = self._runtime.run_in_node_mode(
            poll,
            FieldsAggregation(
                fields={"accounts": MajorityAggregation(), "timestamp": MedianAggregation()}
            ),
            step="fetch_events",
        )

        accounts = reduced["accounts"]
        if accounts == ERROR_SENTINEL:
            raise UpstreamCallError("source ledger unavailable")
        timestamp = reduced["timestamp"]
        timestamp = "" if timestamp == ERROR_SENTINEL else timestamp

        return [
            ComplianceEvent(account=account, frozen=True, source_timestamp=timestamp)
            for account in accounts.split(_ACCOUNT_SEPARATOR)
            if account
        ]

    def encode_policy_update(self, events: list[ComplianceEvent]) -> str:
        """One RejectPolicy call per event, packed into a single payload."""

        calls: list[str] = []
        for event in events:
            address = self._resolver.resolve(event.account)
            if event.frozen:
                calls.append(reject_address_calldata(address))
            else:
                calls.append(unreject_address_calldata(address))
            logger.debug(
                "Encoded policy update",
                extra={"account": event.account, "address": address, "frozen": event.frozen},
            )
        return encode_call_batch(calls)

    def _finish(
        self,
        run: WorkflowRun[ComplianceSyncState],
        summary: str,
        **details: object,
    ) -> ComplianceSyncResult:
        logger.info(
            "Compliance sync finished",
            extra={"state": run.state.value, "trace": run.trace(), "summary": summary},
        )
        return ComplianceSyncResult(
            state=run.state,
            summary=summary,
            trace=run.trace(),
            **details,  # type: ignore[arg-type]
        )


def _delivery_summary(outcome: DeliveryOutcome) -> str:
    if outcome.status == DeliveryStatus.SUCCESS:
        return f"Compliance sync complete. Tx: {outcome.tx_hash}"
    if outcome.status == DeliveryStatus.PENDING:
        return f"Compliance sync pending. Tx: {outcome.tx_hash or 'pending'}"
    return f"Failed: {outcome.error_message or 'unknown error'}"
