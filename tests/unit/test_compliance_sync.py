"""Tests for the compliance sync workflow over fake oracle nodes."""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest
import requests
from eth_abi import decode
from eth_utils import decode_hex, function_signature_to_4byte_selector
from fakes import MIRROR_URL, REJECT_POLICY, TOKEN_ID, FakeNetwork, FakeResponse

from kesy_oracle.oracle.chain.delivery import (
    DeliveryOutcome,
    DeliveryStatus,
    ForwarderDeliveryClient,
)
from kesy_oracle.oracle.chain.mirror import StaticAddressResolver
from kesy_oracle.oracle.codec import hedera_long_zero_address
from kesy_oracle.oracle.config import ComplianceSyncSettings
from kesy_oracle.oracle.consensus.report import DigestReportSigner
from kesy_oracle.oracle.consensus.runtime import LocalDON
from kesy_oracle.oracle.workflow.compliance_sync import (
    NO_UPDATES_NEEDED,
    ComplianceSyncWorkflow,
)
from kesy_oracle.oracle.workflow.events import CRON_TICK, TriggerEvent
from kesy_oracle.oracle.workflow.state_machine import ComplianceSyncState

BALANCES_URL = f"{MIRROR_URL}/api/v1/tokens/{TOKEN_ID}/balances?account.balance=0&limit=10"
SNAPSHOT_TS = "1700000000.000000001"
OVERRIDE = "0x6666666666666666666666666666666666666666"


def balances(*entries: tuple[str, int]) -> FakeResponse:
    return FakeResponse(
        {
            "timestamp": SNAPSHOT_TS,
            "balances": [{"account": a, "balance": b} for a, b in entries],
            "links": {"next": None},
        }
    )


def mirror(*entries: tuple[str, int]):
    def handle(_node_id: int, method: str, url: str, _body: Any) -> FakeResponse:
        assert method == "GET" and url == BALANCES_URL
        return balances(*entries)

    return handle


def _delivery(outcome: DeliveryOutcome | None = None) -> Mock:
    delivery = Mock(spec=ForwarderDeliveryClient)
    delivery.deliver.return_value = outcome or DeliveryOutcome(
        status=DeliveryStatus.SUCCESS, tx_hash="0xfeed"
    )
    return delivery


def _workflow(
    settings: ComplianceSyncSettings,
    network: FakeNetwork,
    delivery: Mock,
    signer: Mock | None = None,
) -> ComplianceSyncWorkflow:
    return ComplianceSyncWorkflow(
        settings,
        runtime=LocalDON(settings.don, session_factory=network.session_factory),
        signer=signer or Mock(wraps=DigestReportSigner()),
        delivery=delivery,
        resolver=StaticAddressResolver({"0.0.42": OVERRIDE}),
    )


def test_no_frozen_accounts_means_no_update(compliance_settings) -> None:
    network = FakeNetwork(mirror())
    delivery = _delivery()
    signer = Mock(wraps=DigestReportSigner())

    result = _workflow(compliance_settings, network, delivery, signer).execute()

    assert result.summary == NO_UPDATES_NEEDED
    assert result.state == ComplianceSyncState.NO_UPDATE_NEEDED
    assert not result.updated
    assert result.trace == ["start", "events_fetched", "no_update_needed"]
    signer.sign.assert_not_called()
    delivery.deliver.assert_not_called()


def test_only_zero_balances_count_as_frozen(compliance_settings) -> None:
    network = FakeNetwork(mirror(("0.0.7", 25), ("0.0.8", 1)))
    delivery = _delivery()

    result = _workflow(compliance_settings, network, delivery).execute()

    assert result.summary == NO_UPDATES_NEEDED
    delivery.deliver.assert_not_called()


def test_frozen_accounts_produce_one_report_and_one_delivery(compliance_settings) -> None:
    network = FakeNetwork(mirror(("0.0.5005", 0), ("0.0.42", 0), ("0.0.9", 3)))
    delivery = _delivery()
    signer = Mock(wraps=DigestReportSigner())

    result = _workflow(compliance_settings, network, delivery, signer).execute()

    assert result.summary == "Compliance sync complete. Tx: 0xfeed"
    assert result.updated
    assert [e.account for e in result.events] == ["0.0.42", "0.0.5005"]
    assert all(e.frozen and e.source_timestamp == SNAPSHOT_TS for e in result.events)
    assert signer.sign.call_count == 1
    delivery.deliver.assert_called_once_with(
        result.report, receiver=REJECT_POLICY, gas_limit=compliance_settings.gas_limit
    )

    (calls,) = decode(["bytes[]"], result.report.payload_bytes)
    selector = function_signature_to_4byte_selector("rejectAddress(address)")
    assert [c[:4] for c in calls] == [selector, selector]
    targets = [decode(["address"], c[4:])[0].lower() for c in calls]
    assert targets == [OVERRIDE, hedera_long_zero_address("0.0.5005").lower()]
    assert DigestReportSigner().verify(result.report)


def test_handle_returns_summary_string(compliance_settings) -> None:
    network = FakeNetwork(mirror(("0.0.5005", 0)))

    summary = _workflow(compliance_settings, network, _delivery()).handle(
        TriggerEvent(type=CRON_TICK, payload={})
    )

    assert summary == "Compliance sync complete. Tx: 0xfeed"


@pytest.mark.parametrize(
    ("outcome", "summary"),
    [
        (DeliveryOutcome(status=DeliveryStatus.PENDING), "Compliance sync pending. Tx: pending"),
        (
            DeliveryOutcome(status=DeliveryStatus.FAILURE, error_message="reverted"),
            "Failed: reverted",
        ),
    ],
)
def test_delivery_outcome_shapes_summary(compliance_settings, outcome, summary) -> None:
    network = FakeNetwork(mirror(("0.0.5005", 0)))
    delivery = _delivery(outcome)

    result = _workflow(compliance_settings, network, delivery).execute()

    assert result.summary == summary
    assert result.delivery == outcome
    assert delivery.deliver.call_count == 1


def test_minority_disagreement_is_outvoted(compliance_settings) -> None:
    def handle(node_id: int, _method: str, _url: str, _body: Any) -> FakeResponse:
        if node_id == 3:
            return balances(("0.0.5005", 0), ("0.0.6006", 0))
        return balances(("0.0.5005", 0))

    network = FakeNetwork(handle)
    delivery = _delivery()

    result = _workflow(compliance_settings, network, delivery).execute()

    assert [e.account for e in result.events] == ["0.0.5005"]
    assert delivery.deliver.call_count == 1


def test_unreachable_source_ledger_fails_without_delivery(compliance_settings) -> None:
    def down(*_args: Any) -> FakeResponse:
        raise requests.ConnectionError("mirror node unreachable")

    network = FakeNetwork(down)
    delivery = _delivery()

    result = _workflow(compliance_settings, network, delivery).execute()

    assert result.summary == "Failed: source ledger unavailable"
    assert result.state == ComplianceSyncState.FAILED
    delivery.deliver.assert_not_called()


def test_split_source_ledger_view_is_a_consensus_failure(compliance_settings) -> None:
    def split(node_id: int, _method: str, _url: str, _body: Any) -> FakeResponse:
        if node_id < 2:
            return FakeResponse({"_status": {"messages": []}}, status_code=500)
        return balances(("0.0.5005", 0))

    network = FakeNetwork(split)
    delivery = _delivery()

    result = _workflow(compliance_settings, network, delivery).execute()

    assert result.summary.startswith("Consensus failure: ")
    assert result.state == ComplianceSyncState.FAILED
    delivery.deliver.assert_not_called()


def test_unmappable_account_fails_before_signing(compliance_settings) -> None:
    network = FakeNetwork(mirror(("not.an.account", 0)))
    delivery = _delivery()
    signer = Mock(wraps=DigestReportSigner())

    result = _workflow(compliance_settings, network, delivery, signer).execute()

    assert result.state == ComplianceSyncState.FAILED
    assert result.summary.startswith("Failed: Invalid Hedera account id")
    signer.sign.assert_not_called()
    delivery.deliver.assert_not_called()
