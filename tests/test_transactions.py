# tests/test_transactions.py
"""Tests for transaction normalization and idempotency keys."""

import pytest

from dsigner.core.errors import ValidationError
from dsigner.core.transactions import (
    MessageClock,
    derive_idempotency_key,
    is_hex_bytes,
    message_idempotency_key,
    message_to_wire,
    normalize_transaction,
    to_quantity,
    transaction_idempotency_key,
)

WALLET = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"


class TestToQuantity:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0, "0x0"),
            (21000, "0x5208"),
            ("21000", "0x5208"),
            ("0x5208", "0x5208"),
            ("0x005208", "0x5208"),
            ("0XABC", "0xabc"),
        ],
    )
    def test_accepts_integer_like_values(self, value, expected) -> None:
        assert to_quantity("gasLimit", value) == expected

    @pytest.mark.parametrize("value", [True, 1.5, -1, "-5", "twelve", "0x", [], {}])
    def test_rejects_everything_else(self, value) -> None:
        with pytest.raises(ValidationError):
            to_quantity("value", value)


class TestNormalizeTransaction:
    def test_numeric_fields_become_hex(self) -> None:
        tx = normalize_transaction(
            {
                "to": WALLET,
                "nonce": 7,
                "gasLimit": "21000",
                "maxFeePerGas": 30_000_000_000,
                "maxPriorityFeePerGas": "0x3b9aca00",
                "value": 10**18,
                "chainId": 1,
                "data": "0x",
            }
        )
        assert tx == {
            "to": WALLET,
            "nonce": "0x7",
            "gasLimit": "0x5208",
            "maxFeePerGas": "0x6fc23ac00",
            "maxPriorityFeePerGas": "0x3b9aca00",
            "value": "0xde0b6b3a7640000",
            "chainId": "0x1",
            "data": "0x",
        }

    def test_max_fee_is_not_taken_from_priority_fee(self) -> None:
        tx = normalize_transaction({"nonce": 1, "maxFeePerGas": 100, "maxPriorityFeePerGas": 2})
        assert tx["maxFeePerGas"] == "0x64"
        assert tx["maxPriorityFeePerGas"] == "0x2"

    def test_none_fields_are_dropped(self) -> None:
        tx = normalize_transaction({"nonce": 1, "value": None, "data": None})
        assert tx == {"nonce": "0x1"}

    def test_gas_alias_folds_into_gas_limit(self) -> None:
        assert normalize_transaction({"gas": 21000}) == {"gasLimit": "0x5208"}

    def test_explicit_gas_limit_wins_over_alias(self) -> None:
        tx = normalize_transaction({"gas": 1, "gasLimit": 21000})
        assert tx == {"gasLimit": "0x5208"}

    def test_is_idempotent(self) -> None:
        once = normalize_transaction({"nonce": "12", "value": 5, "gas": "0x10"})
        assert normalize_transaction(once) == once

    def test_rejects_non_mapping(self) -> None:
        with pytest.raises(ValidationError):
            normalize_transaction(["nonce", 1])  # type: ignore[arg-type]


class TestIdempotencyKeys:
    def test_same_nonce_collapses(self) -> None:
        first = transaction_idempotency_key(WALLET, {"nonce": 5, "value": 1})
        second = transaction_idempotency_key(WALLET, {"nonce": "0x5", "value": 2})
        assert first == second

    def test_different_nonces_differ(self) -> None:
        assert transaction_idempotency_key(WALLET, {"nonce": 5}) != transaction_idempotency_key(
            WALLET, {"nonce": 6}
        )

    def test_different_wallets_differ(self) -> None:
        other = "0xAb8483F64d9C6d1EcF9b849Ae677dD3315835cb2"
        assert transaction_idempotency_key(WALLET, {"nonce": 5}) != transaction_idempotency_key(
            other, {"nonce": 5}
        )

    def test_transaction_key_requires_nonce(self) -> None:
        with pytest.raises(ValidationError):
            transaction_idempotency_key(WALLET, {"value": 1})

    def test_key_layout(self) -> None:
        key = derive_idempotency_key("transaction", WALLET, "0x5", prefix="dsigner")
        assert key == f"dsigner_transaction_{WALLET.lower()}_0x5"

    def test_messages_at_different_instants_differ(self) -> None:
        first = message_idempotency_key(WALLET, timestamp_ns=1_725_000_000_000_000_000)
        second = message_idempotency_key(WALLET, timestamp_ns=1_725_000_000_000_000_001)
        assert first != second

    def test_messages_in_the_same_instant_collapse(self) -> None:
        stamp = 1_725_000_000_000_000_000
        assert message_idempotency_key(WALLET, timestamp_ns=stamp) == message_idempotency_key(
            WALLET, timestamp_ns=stamp
        )

    def test_message_key_uses_clock(self, mocker) -> None:
        mocker.patch("dsigner.core.transactions._message_clock", MessageClock())
        mocker.patch("dsigner.core.transactions.time.time_ns", side_effect=[100, 200])
        assert message_idempotency_key(WALLET).endswith("_100")
        assert message_idempotency_key(WALLET).endswith("_200")

    def test_message_key_survives_clock_stepping_back(self, mocker) -> None:
        mocker.patch("dsigner.core.transactions._message_clock", MessageClock())
        mocker.patch("dsigner.core.transactions.time.time_ns", side_effect=[500, 100, 500])
        keys = [message_idempotency_key(WALLET) for _ in range(3)]
        assert [key.rsplit("_", 1)[1] for key in keys] == ["500", "501", "502"]

    def test_transaction_and_message_keys_never_collide(self) -> None:
        assert not message_idempotency_key(WALLET, timestamp_ns=5).startswith("dsigner_transaction")


def test_message_bytes_travel_as_hex() -> None:
    assert message_to_wire(b"\x01\xff") == "0x01ff"
    assert message_to_wire("Test") == "Test"


@pytest.mark.parametrize(
    ("text", "expected"),
    [("0x01ff", True), ("0XAB", True), ("0x", False), ("0x123", False), ("hello", False), ("0x01ff\n", False)],
)
def test_is_hex_bytes(text: str, expected: bool) -> None:
    assert is_hex_bytes(text) is expected
