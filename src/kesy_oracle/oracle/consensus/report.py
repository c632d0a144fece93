"""Signed reports handed from a terminal workflow step to delivery."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Protocol

from eth_utils import decode_hex, encode_hex, keccak


@dataclass(frozen=True, slots=True)
class SignedReport:
    """A consensus-attested payload a destination contract treats as authoritative."""

    encoded_payload: str  # base64
    encoder_kind: str
    signing_algorithm: str
    hash_algorithm: str
    digest: str

    @property
    def payload_bytes(self) -> bytes:
        return base64.b64decode(self.encoded_payload)

    def to_json(self) -> dict[str, object]:
        return {
            "encodedPayload": self.encoded_payload,
            "encoderName": self.encoder_kind,
            "signingAlgo": self.signing_algorithm,
            "hashingAlgo": self.hash_algorithm,
            "digest": self.digest,
        }


class ReportSigner(Protocol):
    def sign(
        self,
        payload: str,
        *,
        encoder_kind: str = "evm",
        signing_algorithm: str = "ecdsa",
        hash_algorithm: str = "keccak256",
    ) -> SignedReport: ...

    def verify(self, report: SignedReport) -> bool: ...


class DigestReportSigner:
    """Produces the report envelope and its keccak256 digest.

    Quorum signatures over the digest are attached by the node-consensus
    runtime when the report is written; this signer only fixes the envelope,
    which makes it deterministic for identical payloads.
    """

    def sign(
        self,
        payload: str,
        *,
        encoder_kind: str = "evm",
        signing_algorithm: str = "ecdsa",
        hash_algorithm: str = "keccak256",
    ) -> SignedReport:
        if hash_algorithm != "keccak256":
            raise ValueError(f"Unsupported hash algorithm: {hash_algorithm}")
        return SignedReport(
            encoded_payload=base64.b64encode(decode_hex(payload)).decode("ascii"),
            encoder_kind=encoder_kind,
            signing_algorithm=signing_algorithm,
            hash_algorithm=hash_algorithm,
            digest=encode_hex(keccak(decode_hex(payload))),
        )

    def verify(self, report: SignedReport) -> bool:
        return encode_hex(keccak(report.payload_bytes)) == report.digest
