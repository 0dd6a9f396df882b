"""Signing gateway between authenticated callers and the custodial provider."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from dsigner.core.errors import ValidationError
from dsigner.core.settings import settings
from dsigner.core.transactions import (
    SigningKind,
    is_hex_bytes,
    message_idempotency_key,
    normalize_transaction,
    transaction_idempotency_key,
)
from dsigner.services.custodian import CustodialWalletClient
from dsigner.services.sessions import SessionResolver

logger = logging.getLogger(__name__)


class SigningGateway:
    """Resolve the caller's wallet, then relay a signing request for it."""

    def __init__(
        self,
        resolver: SessionResolver,
        custodian: CustodialWalletClient,
        *,
        key_prefix: str | None = None,
    ) -> None:
        self.resolver = resolver
        self.custodian = custodian
        self.key_prefix = key_prefix or settings.idempotency_key_prefix

    async def sign(
        self,
        kind: SigningKind,
        access_token: str,
        payload: Any,
        *,
        is_bytes: bool = False,
    ) -> str:
        """Sign ``payload`` with the wallet bound to ``access_token``.

        The payload is validated and the token resolved before anything is
        sent to the custodial provider, so a malformed request or an invalid
        token never costs a provider call. The provider's artifact is
        returned verbatim.
        """
        if kind == "transaction":
            transaction = normalize_transaction(payload)
            if transaction.get("nonce") is None:
                raise ValidationError("transaction.nonce is required")
        elif kind == "message":
            if not isinstance(payload, str) or not payload:
                raise ValidationError("message in the body request is required")
            if is_bytes and not is_hex_bytes(payload):
                raise ValidationError("message must be 0x-prefixed hex when isBytes is set")
        else:
            raise ValidationError(f"Unsupported signing kind: {kind}")

        binding = await self.resolver.resolve(access_token)
        wallet = binding.wallet

        if kind == "transaction":
            key = transaction_idempotency_key(wallet, transaction, prefix=self.key_prefix)
            logger.info("Signing transaction nonce %s for %s", transaction["nonce"], wallet)
            return await self.custodian.sign_transaction(
                wallet, transaction, idempotency_key=key
            )

        key = message_idempotency_key(wallet, prefix=self.key_prefix)
        logger.info("Signing message for %s", wallet)
        return await self.custodian.sign_message(
            wallet, payload, idempotency_key=key, is_bytes=is_bytes
        )

    async def sign_transaction(self, access_token: str, transaction: Mapping[str, Any]) -> str:
        """Shorthand for ``sign("transaction", ...)``."""
        return await self.sign("transaction", access_token, transaction)

    async def sign_message(self, access_token: str, message: str, *, is_bytes: bool = False) -> str:
        """Shorthand for ``sign("message", ...)``."""
        return await self.sign("message", access_token, message, is_bytes=is_bytes)
