"""Hedera Mirror Node REST client used by the compliance sync."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import requests

from ..codec import hedera_long_zero_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ComplianceEvent:
    """A source-ledger account whose freeze state should be mirrored."""

    account: str
    frozen: bool
    source_timestamp: str


@dataclass(frozen=True, slots=True)
class BalanceSnapshot:
    accounts: list[str]
    timestamp: str


class MirrorNodeClient:
    """Read-only access to token balance listings."""

    def __init__(self, *, session: requests.Session, base_url: str, timeout: float = 30.0) -> None:
        if not base_url:
            raise ValueError("Mirror node base url is required")
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def balances_url(self, *, token_id: str, limit: int) -> str:
        return (
            f"{self._base_url}/api/v1/tokens/{token_id}/balances"
            f"?account.balance=0&limit={limit}"
        )

    def zero_balance_accounts(self, *, token_id: str, limit: int) -> BalanceSnapshot:
        """Accounts holding zero of ``token_id``.

        Zero balance is the freeze heuristic: the balances listing does not
        expose ``freeze_status``. Raises ``requests.RequestException`` or
        ``ValueError`` on transport or decoding failure.
        """

        url = self.balances_url(token_id=token_id, limit=limit)
        resp = self._session.get(url, timeout=self._timeout)
        resp.raise_for_status()
        data: dict[str, Any] = resp.json()

        accounts: list[str] = []
        for entry in data.get("balances") or []:
            if not isinstance(entry, dict):
                continue
            account = entry.get("account")
            if entry.get("balance") == 0 and isinstance(account, str) and account:
                accounts.append(account)

        timestamp = data.get("timestamp")
        return BalanceSnapshot(
            accounts=sorted(set(accounts)),
            timestamp=timestamp if isinstance(timestamp, str) else "",
        )


class AddressResolver(Protocol):
    """Maps a source-ledger account id to its destination-chain address."""

    def resolve(self, account_id: str) -> str: ...


class StaticAddressResolver:
    """Configured overrides first, then the Hedera long-zero alias.

    Accounts created with an ECDSA key have a separate EVM alias that only the
    mirror node's ``/api/v1/accounts/{id}`` knows; list those in the overrides.
    """

    def __init__(self, overrides: dict[str, str] | None = None) -> None:
        self._overrides = dict(overrides or {})

    def resolve(self, account_id: str) -> str:
        override = self._overrides.get(account_id)
        if override:
            return override
        return hedera_long_zero_address(account_id)
