"""Submit signed reports to a destination-chain contract.

Delivery happens exactly once per terminal workflow step. The client never
retries: a slow submission that is retried could land twice, and idempotency
belongs to the receiving contract. Operators retry by re-running the workflow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import requests

from ..consensus.report import SignedReport

logger = logging.getLogger(__name__)


class DeliveryStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"


@dataclass(frozen=True, slots=True)
class DeliveryOutcome:
    status: DeliveryStatus
    tx_hash: str | None = None
    error_message: str | None = None

    def to_json(self) -> dict[str, object]:
        return {
            "status": self.status.value,
            "txHash": self.tx_hash,
            "errorMessage": self.error_message,
        }


class DeliveryClient(Protocol):
    def deliver(
        self, report: SignedReport, *, receiver: str, gas_limit: int
    ) -> DeliveryOutcome: ...


_SUCCESS_STATUSES = {"SUCCESS", "TX_STATUS_SUCCESS"}
_FAILURE_STATUSES = {"REVERTED", "FATAL", "FAILURE", "TX_STATUS_REVERTED", "TX_STATUS_FATAL"}


def parse_delivery_response(data: dict[str, Any]) -> DeliveryOutcome:
    tx_hash = data.get("txHash")
    tx_hash = tx_hash if isinstance(tx_hash, str) and tx_hash else None
    error = data.get("errorMessage")
    error = error if isinstance(error, str) and error else None
    status_raw = str(data.get("txStatus") or "").upper()

    if status_raw in _SUCCESS_STATUSES:
        # Without a hash the transaction cannot be confirmed yet.
        status = DeliveryStatus.SUCCESS if tx_hash else DeliveryStatus.PENDING
    elif status_raw in _FAILURE_STATUSES:
        status = DeliveryStatus.FAILURE
    elif error:
        status = DeliveryStatus.FAILURE
    else:
        status = DeliveryStatus.PENDING
    return DeliveryOutcome(status=status, tx_hash=tx_hash, error_message=error)


class ForwarderDeliveryClient:
    """Writes reports through the oracle network's forwarder endpoint."""

    def __init__(
        self,
        *,
        url: str,
        chain_selector: int,
        session: requests.Session | None = None,
        timeout: float = 60.0,
    ) -> None:
        if not url:
            raise ValueError("Forwarder url is required")
        self._url = url
        self._chain_selector = chain_selector
        self._session = session or requests.Session()
        self._timeout = timeout

    def close(self) -> None:
        self._session.close()

    def deliver(self, report: SignedReport, *, receiver: str, gas_limit: int) -> DeliveryOutcome:
        body = {
            "chainSelector": str(self._chain_selector),
            "receiver": receiver,
            "report": report.to_json(),
            "gasConfig": {"gasLimit": str(gas_limit)},
        }
        try:
            resp = self._session.post(self._url, json=body, timeout=self._timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Report submission failed", extra={"receiver": receiver, "error": str(e)})
            return DeliveryOutcome(status=DeliveryStatus.FAILURE, error_message=str(e))

        if not isinstance(data, dict):
            return DeliveryOutcome(
                status=DeliveryStatus.FAILURE, error_message="Malformed forwarder response"
            )
        outcome = parse_delivery_response(data)
        logger.info(
            "Report submitted",
            extra={
                "receiver": receiver,
                "status": outcome.status.value,
                "tx_hash": outcome.tx_hash,
            },
        )
        return outcome
