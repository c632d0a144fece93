"""JSON-RPC client for read-only calls against a fork/sandbox endpoint.

Every method is safe to call inside a node-local closure: transport failures
and malformed bodies come back as :data:`ERROR_SENTINEL` rather than raising.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import requests

from ..consensus.aggregation import ERROR_SENTINEL

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RpcReply:
    """Decoded JSON-RPC response: exactly one of ``result``/``error`` is set."""

    result: str | None = None
    error: str | None = None
    error_data: str | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    def as_word(self) -> str:
        """The result, else the error message, else the sentinel."""

        if self.result is not None:
            return self.result
        return self.error or ERROR_SENTINEL


def parse_rpc_body(body: str) -> RpcReply:
    """Decode a JSON-RPC body defensively.

    A body with neither ``result`` nor ``error`` is itself an error.
    """

    try:
        parsed = json.loads(body)
    except (TypeError, ValueError):
        return RpcReply(error=ERROR_SENTINEL)
    if not isinstance(parsed, dict):
        return RpcReply(error=ERROR_SENTINEL)

    result = parsed.get("result")
    if isinstance(result, str):
        return RpcReply(result=result)

    error = parsed.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        data = error.get("data")
        return RpcReply(
            error=message if isinstance(message, str) and message else ERROR_SENTINEL,
            error_data=data if isinstance(data, str) else None,
        )
    return RpcReply(error=ERROR_SENTINEL)


class JsonRpcClient:
    """Small wrapper over a node's HTTP session for ``eth_*`` calls."""

    def __init__(
        self,
        *,
        session: requests.Session,
        url: str,
        timeout: float = 30.0,
        block: str = "latest",
    ) -> None:
        if not url:
            raise ValueError("RPC url is required")
        self._session = session
        self._url = url
        self._timeout = timeout
        self._block = block

    def _tx(
        self, *, to: str, data: str, sender: str | None = None, gas: int | None = None
    ) -> dict[str, str]:
        tx = {"to": to, "data": data}
        if sender is not None:
            tx["from"] = sender
        if gas is not None:
            tx["gas"] = hex(gas)
        return tx

    def call_raw(self, method: str, params: list[Any], *, request_id: int = 1) -> str:
        """POST one request and return the raw response body (sentinel on transport error)."""

        payload = {"jsonrpc": "2.0", "method": method, "params": params, "id": request_id}
        try:
            resp = self._session.post(
                self._url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.warning("RPC transport error", extra={"method": method, "error": str(e)})
            return ERROR_SENTINEL
        return resp.text

    def eth_call(
        self,
        *,
        to: str,
        data: str,
        sender: str | None = None,
        gas: int | None = None,
        request_id: int = 1,
    ) -> RpcReply:
        body = self.call_raw(
            "eth_call",
            [self._tx(to=to, data=data, sender=sender, gas=gas), self._block],
            request_id=request_id,
        )
        return parse_rpc_body(body)

    def estimate_gas(
        self, *, to: str, data: str, sender: str | None = None, request_id: int = 1
    ) -> RpcReply:
        body = self.call_raw(
            "eth_estimateGas",
            [self._tx(to=to, data=data, sender=sender), self._block],
            request_id=request_id,
        )
        return parse_rpc_body(body)
