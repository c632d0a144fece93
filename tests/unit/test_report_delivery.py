from __future__ import annotations

import base64
from typing import Any

import pytest
import requests
from eth_utils import encode_hex, keccak
from fakes import FORWARDER_URL, REJECT_POLICY, FakeNetwork, FakeResponse

from kesy_oracle.oracle.chain.delivery import (
    DeliveryStatus,
    ForwarderDeliveryClient,
    parse_delivery_response,
)
from kesy_oracle.oracle.consensus.report import DigestReportSigner

PAYLOAD = "0xdeadbeef"


def test_signer_is_deterministic_and_verifiable() -> None:
    signer = DigestReportSigner()

    report = signer.sign(PAYLOAD)

    assert report == signer.sign(PAYLOAD)
    assert report.payload_bytes == bytes.fromhex("deadbeef")
    assert report.encoded_payload == base64.b64encode(bytes.fromhex("deadbeef")).decode()
    assert report.digest == encode_hex(keccak(bytes.fromhex("deadbeef")))
    assert report.to_json()["encoderName"] == "evm"
    assert report.to_json()["signingAlgo"] == "ecdsa"
    assert report.to_json()["hashingAlgo"] == "keccak256"
    assert signer.verify(report)


def test_signer_detects_tampering() -> None:
    signer = DigestReportSigner()
    report = signer.sign(PAYLOAD)
    tampered = type(report)(
        encoded_payload=base64.b64encode(b"\x00").decode(),
        encoder_kind=report.encoder_kind,
        signing_algorithm=report.signing_algorithm,
        hash_algorithm=report.hash_algorithm,
        digest=report.digest,
    )

    assert not signer.verify(tampered)


def test_signer_rejects_unknown_hash() -> None:
    with pytest.raises(ValueError):
        DigestReportSigner().sign(PAYLOAD, hash_algorithm="sha256")


@pytest.mark.parametrize(
    ("body", "status"),
    [
        ({"txStatus": "SUCCESS", "txHash": "0xabc"}, DeliveryStatus.SUCCESS),
        ({"txStatus": "SUCCESS"}, DeliveryStatus.PENDING),
        ({"txStatus": "REVERTED", "txHash": "0xabc"}, DeliveryStatus.FAILURE),
        ({"errorMessage": "nonce too low"}, DeliveryStatus.FAILURE),
        ({}, DeliveryStatus.PENDING),
    ],
)
def test_parse_delivery_response(body: dict[str, Any], status: DeliveryStatus) -> None:
    assert parse_delivery_response(body).status == status


def _client(handler) -> tuple[ForwarderDeliveryClient, FakeNetwork]:
    network = FakeNetwork(handler)
    client = ForwarderDeliveryClient(
        url=FORWARDER_URL, chain_selector=16015286601757825753, session=network.session_factory(0)
    )
    return client, network


def test_deliver_posts_report_once() -> None:
    client, network = _client(
        lambda *_a: FakeResponse({"txStatus": "SUCCESS", "txHash": "0xbeef"})
    )
    report = DigestReportSigner().sign(PAYLOAD)

    outcome = client.deliver(report, receiver=REJECT_POLICY, gas_limit=200_000)

    assert outcome.status == DeliveryStatus.SUCCESS
    assert outcome.to_json() == {"status": "success", "txHash": "0xbeef", "errorMessage": None}
    assert len(network.calls) == 1
    method, url, body = network.calls[0]
    assert (method, url) == ("POST", FORWARDER_URL)
    assert body == {
        "chainSelector": "16015286601757825753",
        "receiver": REJECT_POLICY,
        "report": report.to_json(),
        "gasConfig": {"gasLimit": "200000"},
    }


def test_deliver_does_not_retry_transport_errors() -> None:
    def down(*_a: Any) -> FakeResponse:
        raise requests.ConnectionError("connection reset")

    client, network = _client(down)
    report = DigestReportSigner().sign(PAYLOAD)

    outcome = client.deliver(report, receiver=REJECT_POLICY, gas_limit=1)

    assert outcome.status == DeliveryStatus.FAILURE
    assert "connection reset" in (outcome.error_message or "")
    assert len(network.calls) == 1


def test_deliver_http_error_is_failure() -> None:
    client, _ = _client(lambda *_a: FakeResponse("bad gateway", status_code=502))
    report = DigestReportSigner().sign(PAYLOAD)

    outcome = client.deliver(report, receiver=REJECT_POLICY, gas_limit=1)

    assert outcome.status == DeliveryStatus.FAILURE


def test_forwarder_url_required() -> None:
    with pytest.raises(ValueError):
        ForwarderDeliveryClient(url="", chain_selector=1)
