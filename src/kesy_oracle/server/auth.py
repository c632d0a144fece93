"""Request-signature authorization for the HTTP trigger.

A caller signs the raw request body as an EIP-191 personal message and sends
the hex signature in ``X-KESY-Signature``. The recovered address must be on
the configured allow-list; the source IP is never considered.
"""

from __future__ import annotations

import logging

from eth_account import Account
from eth_account.messages import encode_defunct

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-KESY-Signature"


class UnauthorizedTrigger(Exception):
    pass


def recover_signer(body: bytes, signature: str) -> str:
    """Lower-cased address that produced ``signature`` over ``body``."""

    try:
        address = Account.recover_message(encode_defunct(primitive=body), signature=signature)
    except Exception as e:  # eth-account raises several unrelated types for bad input
        raise UnauthorizedTrigger("Invalid request signature") from e
    return str(address).lower()


def authorize(body: bytes, signature: str | None, allowed: list[str]) -> str | None:
    """Return the authorized principal, or ``None`` when checks are disabled.

    Raises:
        UnauthorizedTrigger: Missing, invalid, or unlisted signature.
    """

    if not allowed:
        return None
    if not signature:
        raise UnauthorizedTrigger(f"Missing {SIGNATURE_HEADER} header")

    signer = recover_signer(body, signature)
    if signer not in allowed:
        logger.warning("Rejected trigger from unlisted signer", extra={"signer": signer})
        raise UnauthorizedTrigger("Signer is not authorized")
    return signer
