"""Wire encodings exchanged between workflow steps and the destination chain.

Amounts are parsed with :class:`decimal.Decimal`, never through floats, so
``"0.1"`` scales to exactly ``100000`` base units. Calldata is ABI-encoded with
``eth-abi``; function selectors come from ``eth-utils``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal, InvalidOperation

from eth_abi import encode
from eth_utils import (
    decode_hex,
    encode_hex,
    function_signature_to_4byte_selector,
    is_address,
    to_checksum_address,
)

from .consensus.aggregation import ERROR_SENTINEL
from .errors import RequestValidationError

FIELD_SEPARATOR = "|"

BALANCE_OF = "balanceOf(address)"
ADDRESS_REJECTED = "addressRejected(address)"
BRIDGE_KESY = "bridgeKESY(uint64,bytes,uint256)"
REJECT_ADDRESS = "rejectAddress(address)"
UNREJECT_ADDRESS = "unrejectAddress(address)"


def to_base_units(amount: str, decimals: int) -> int:
    """Scale a human-readable decimal amount to integer base units."""

    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise RequestValidationError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite() or value < 0:
        raise RequestValidationError(f"Invalid amount: {amount!r}")

    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise RequestValidationError(
            f"Amount {amount!r} has more than {decimals} decimal places"
        )
    return int(scaled)


def format_units(value: int, decimals: int) -> str:
    """Render base units as a decimal string (``500000000, 6 -> "500"``)."""

    negative = value < 0
    whole, frac = divmod(abs(value), 10**decimals)
    text = str(whole)
    if decimals and frac:
        text += "." + str(frac).rjust(decimals, "0").rstrip("0")
    return f"-{text}" if negative else text


def _hex_body(word: str) -> str | None:
    if not isinstance(word, str) or word == ERROR_SENTINEL:
        return None
    if not word.startswith(("0x", "0X")):
        return None
    body = word[2:]
    try:
        if body:
            int(body, 16)
    except ValueError:
        return None
    return body


def decode_uint(word: str) -> int | None:
    """Decode a hex return word; ``None`` for the sentinel or non-hex text."""

    body = _hex_body(word)
    if body is None:
        return None
    return int(body, 16) if body else 0


def word_order(word: str) -> tuple[int, int, str]:
    """Sort key for hex return words: by numeric value, non-hex text last."""

    value = decode_uint(word)
    if value is None:
        return (1, 0, str(word))
    return (0, value, "")


def decode_bool(word: str) -> bool | None:
    value = decode_uint(word)
    if value is None:
        return None
    return value != 0


def checksum_address(value: str) -> str:
    if not isinstance(value, str) or not is_address(value.strip()):
        raise RequestValidationError(f"Invalid EVM address: {value!r}")
    return to_checksum_address(value.strip())


def encode_function_call(signature: str, arg_types: Sequence[str], args: Sequence[object]) -> str:
    selector = function_signature_to_4byte_selector(signature)
    return encode_hex(selector + encode(list(arg_types), list(args)))


def balance_of_calldata(account: str) -> str:
    return encode_function_call(BALANCE_OF, ["address"], [checksum_address(account)])


def address_rejected_calldata(account: str) -> str:
    return encode_function_call(ADDRESS_REJECTED, ["address"], [checksum_address(account)])


def bridge_calldata(*, destination_selector: int, receiver: str, amount: int) -> str:
    """``bridgeKESY`` calldata; the receiver travels as an ABI-encoded address."""

    receiver_bytes = encode(["address"], [checksum_address(receiver)])
    return encode_function_call(
        BRIDGE_KESY,
        ["uint64", "bytes", "uint256"],
        [destination_selector, receiver_bytes, amount],
    )


def reject_address_calldata(account: str) -> str:
    return encode_function_call(REJECT_ADDRESS, ["address"], [checksum_address(account)])


def unreject_address_calldata(account: str) -> str:
    return encode_function_call(UNREJECT_ADDRESS, ["address"], [checksum_address(account)])


def encode_call_batch(calls: Sequence[str]) -> str:
    """Pack several calldata blobs into one ``bytes[]`` report payload."""

    return encode_hex(encode(["bytes[]"], [[decode_hex(c) for c in calls]]))


def join_fields(values: Iterable[object], sep: str = FIELD_SEPARATOR) -> str:
    return sep.join(str(v) for v in values)


def split_fields(payload: str, count: int, sep: str = FIELD_SEPARATOR) -> list[str]:
    """Split a delimited consensus payload.

    The last field keeps any remaining separators; missing fields decode as the
    sentinel.
    """

    if not payload:
        return [ERROR_SENTINEL] * count
    parts = payload.split(sep, count - 1)
    parts += [ERROR_SENTINEL] * (count - len(parts))
    return parts[:count]


def hedera_long_zero_address(account_id: str) -> str:
    """Map ``shard.realm.num`` to its long-zero EVM alias."""

    try:
        shard, realm, num = (int(p) for p in account_id.strip().split("."))
    except ValueError as e:
        raise RequestValidationError(f"Invalid Hedera account id: {account_id!r}") from e
    if min(shard, realm, num) < 0:
        raise RequestValidationError(f"Invalid Hedera account id: {account_id!r}")
    raw = shard.to_bytes(4, "big") + realm.to_bytes(8, "big") + num.to_bytes(8, "big")
    return to_checksum_address(raw)
