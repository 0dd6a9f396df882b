"""Canonical wire encoding for transactions and idempotency keys.

Both the signer client and the signing gateway run transactions through
``normalize_transaction`` so the custodial provider only ever sees one
representation of each numeric field: minimal, lowercase, ``0x``-prefixed hex.
"""

from __future__ import annotations

import re
import threading
import time
from collections.abc import Mapping
from typing import Any, Literal

from dsigner.core.errors import ValidationError

SigningKind = Literal["transaction", "message"]

QUANTITY_FIELDS: tuple[str, ...] = (
    "nonce",
    "gasLimit",
    "gasPrice",
    "maxFeePerGas",
    "maxPriorityFeePerGas",
    "value",
    "chainId",
    "type",
)

# web3.py spells the gas limit "gas"
_FIELD_ALIASES = {"gas": "gasLimit"}

_HEX_RE = re.compile(r"^0[xX][0-9a-fA-F]+$")
_DEC_RE = re.compile(r"^[0-9]+$")
_BYTES_RE = re.compile(r"^0[xX](?:[0-9a-fA-F]{2})+$")


def to_quantity(field: str, value: Any) -> str:
    """Encode a non-negative integer-like value as a JSON-RPC quantity.

    Accepts ``int``, decimal strings and hex strings. Anything else, including
    ``bool`` and ``float``, raises ``ValidationError``.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"Transaction field '{field}' must be an integer")

    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if _HEX_RE.match(text):
            number = int(text, 16)
        elif _DEC_RE.match(text):
            number = int(text, 10)
        else:
            raise ValidationError(f"Transaction field '{field}' is not a valid number: {value!r}")
    else:
        raise ValidationError(f"Transaction field '{field}' must be an integer")

    if number < 0:
        raise ValidationError(f"Transaction field '{field}' must not be negative")
    return hex(number)


def normalize_transaction(transaction: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``transaction`` with numeric fields canonicalized.

    ``None`` values are dropped; non-numeric fields pass through untouched.
    Normalizing an already normalized transaction is a no-op.
    """
    if not isinstance(transaction, Mapping):
        raise ValidationError("transaction must be a JSON object")

    normalized: dict[str, Any] = {}
    for key, value in transaction.items():
        if value is None:
            continue
        name = _FIELD_ALIASES.get(key, key)
        if name != key and name in transaction and transaction[name] is not None:
            continue
        normalized[name] = to_quantity(name, value) if name in QUANTITY_FIELDS else value
    return normalized


def message_to_wire(message: str | bytes) -> str:
    """Render a message payload; raw bytes travel as ``0x`` hex."""
    if isinstance(message, bytes):
        return "0x" + message.hex()
    return message


def is_hex_bytes(text: str) -> bool:
    """True when ``text`` is ``0x`` followed by one or more whole bytes of hex."""
    return _BYTES_RE.fullmatch(text) is not None


def derive_idempotency_key(
    kind: SigningKind,
    wallet_address: str,
    distinguishing_value: str | int,
    *,
    prefix: str = "dsigner",
) -> str:
    """Build the idempotency key for a signing request."""
    return f"{prefix}_{kind}_{wallet_address.lower()}_{distinguishing_value}"


def transaction_idempotency_key(
    wallet_address: str,
    transaction: Mapping[str, Any],
    *,
    prefix: str = "dsigner",
) -> str:
    """Key a transaction by its nonce so retries of the same transaction collapse."""
    nonce = transaction.get("nonce")
    if nonce is None:
        raise ValidationError("transaction.nonce is required")
    return derive_idempotency_key(
        "transaction",
        wallet_address,
        to_quantity("nonce", nonce),
        prefix=prefix,
    )


class MessageClock:
    """Nanosecond wall-clock stamps that strictly increase within a process."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def tick(self) -> int:
        with self._lock:
            self._last = max(self._last + 1, time.time_ns())
            return self._last


_message_clock = MessageClock()


def message_idempotency_key(
    wallet_address: str,
    *,
    prefix: str = "dsigner",
    timestamp_ns: int | None = None,
) -> str:
    """Key a message by the instant it was issued; messages carry no sequence number."""
    issued_at = _message_clock.tick() if timestamp_ns is None else timestamp_ns
    return derive_idempotency_key("message", wallet_address, issued_at, prefix=prefix)
