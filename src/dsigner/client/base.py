"""Signer capability contract shared by every signer adapter."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class SignerState(Enum):
    """Lifecycle of a signer's credentials."""

    UNBOUND = "unbound"
    AUTHENTICATED = "authenticated"  # token held, address not yet resolved
    BOUND = "bound"


@runtime_checkable
class ChainProvider(Protocol):
    """Downstream chain RPC provider a signer can be connected to.

    The provider fills in whatever a transaction is missing (nonce, fees,
    chain id) before it is signed. Signers never broadcast through it.
    """

    async def populate_transaction(
        self, transaction: Mapping[str, Any], sender: str
    ) -> dict[str, Any]:
        ...


class Signer(ABC):
    """Capability set every signer satisfies.

    Callers depend on this interface only, never on a concrete adapter.
    """

    provider: ChainProvider | None = None

    @abstractmethod
    async def get_address(self) -> str:
        """Return the checksummed address this signer signs for."""

    @abstractmethod
    async def sign_transaction(self, transaction: Mapping[str, Any]) -> str:
        """Return the signed, serialized transaction as hex."""

    @abstractmethod
    async def sign_message(self, message: str | bytes) -> str:
        """Return a personal-sign signature over ``message`` as hex."""

    def connect(self, provider: ChainProvider | None) -> Signer:
        """Rebind this signer to ``provider`` and return it.

        Credentials are untouched and no network call is made.
        """
        self.provider = provider
        return self

    async def populate_transaction(self, transaction: Mapping[str, Any]) -> dict[str, Any]:
        """Let the connected provider complete ``transaction``, if there is one."""
        if self.provider is None:
            return dict(transaction)
        return await self.provider.populate_transaction(transaction, await self.get_address())
