"""In-process signer holding its own key, for development and tests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from eth_account import Account
from eth_account.messages import encode_defunct

from dsigner.client.base import ChainProvider, Signer
from dsigner.core.transactions import QUANTITY_FIELDS, normalize_transaction

# eth_account's transaction dict spells the gas limit "gas"
_ETH_ACCOUNT_FIELDS = {"gasLimit": "gas"}


def _to_hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


class LocalSigner(Signer):
    """Signer backed by a private key held in this process."""

    def __init__(self, private_key: str | bytes, provider: ChainProvider | None = None) -> None:
        self._account = Account.from_key(private_key)
        self.provider = provider

    @classmethod
    def create(cls, provider: ChainProvider | None = None) -> LocalSigner:
        """Generate a signer with a fresh random key."""
        return cls(Account.create().key, provider)

    @property
    def address(self) -> str:
        return self._account.address

    async def get_address(self) -> str:
        return self._account.address

    async def sign_transaction(self, transaction: Mapping[str, Any]) -> str:
        populated = await self.populate_transaction(transaction)
        tx: dict[str, Any] = {}
        for key, value in normalize_transaction(populated).items():
            if key == "from":
                continue
            name = _ETH_ACCOUNT_FIELDS.get(key, key)
            tx[name] = int(value, 16) if key in QUANTITY_FIELDS else value
        signed = self._account.sign_transaction(tx)
        return _to_hex(signed.raw_transaction)

    async def sign_message(self, message: str | bytes) -> str:
        if isinstance(message, bytes):
            signable = encode_defunct(primitive=message)
        else:
            signable = encode_defunct(text=message)
        return _to_hex(self._account.sign_message(signable).signature)

    def connect(self, provider: ChainProvider | None) -> LocalSigner:
        self.provider = provider
        return self
