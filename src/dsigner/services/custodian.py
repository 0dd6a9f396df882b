"""Custodial wallet provider client.

The custodial provider (an Engine-compatible backend-wallet API) holds the
private keys. This client creates wallets and asks the provider to sign on a
wallet's behalf; every signing call carries the target wallet address and an
idempotency key so the provider can recognize a duplicate.

Signing requests are never retried here: a timeout means "outcome unknown",
not "signing succeeded", and the decision to resend belongs to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from dsigner.core.errors import ProviderError
from dsigner.core.settings import settings

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_CREATED = 201
WALLET_CREATED_STATUS = "success"


@dataclass(frozen=True)
class CustodianConfig:
    """Immutable configuration for the custodial provider."""

    base_url: str
    bearer_token: str
    timeout_seconds: float


def load_custodian_config() -> CustodianConfig:
    """Build configuration object from global settings."""
    return CustodianConfig(
        base_url=settings.custodian_url.rstrip("/"),
        bearer_token=settings.custodian_bearer_token,
        timeout_seconds=float(settings.custodian_http_timeout_seconds),
    )


class CustodialWalletClient:
    """HTTP client wrapper for custodial wallet operations."""

    def __init__(
        self,
        config: CustodianConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_custodian_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url,
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    def _build_headers(
        self,
        *,
        wallet_address: str | None = None,
        idempotency_key: str | None = None,
    ) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.config.bearer_token}",
            "Content-Type": "application/json",
        }
        if wallet_address:
            headers["x-backend-wallet-address"] = wallet_address
        if idempotency_key:
            headers["x-idempotency-key"] = idempotency_key
        return headers

    async def _post(
        self,
        path: str,
        payload: Mapping[str, Any],
        *,
        wallet_address: str | None = None,
        idempotency_key: str | None = None,
    ) -> Any:
        client = await self._ensure_client()
        headers = self._build_headers(
            wallet_address=wallet_address,
            idempotency_key=idempotency_key,
        )

        start_time = time.monotonic()
        try:
            response = await client.post(path, json=dict(payload), headers=headers)
        except httpx.TimeoutException as exc:
            logger.error(
                "Custodial provider timed out on %s after %.2fs",
                path,
                time.monotonic() - start_time,
            )
            raise ProviderError(f"Custodial provider timed out on {path}") from exc
        except httpx.HTTPError as exc:
            logger.error("Custodial provider request to %s failed: %s", path, exc)
            raise ProviderError(f"Custodial provider request failed: {exc}") from exc

        logger.debug(
            "Custodial provider %s answered %d in %.3fs",
            path,
            response.status_code,
            time.monotonic() - start_time,
        )

        try:
            body = response.json()
        except ValueError as exc:
            raise ProviderError(
                f"Custodial provider returned a non-JSON body ({response.status_code})"
            ) from exc

        if response.status_code not in (HTTP_OK, HTTP_CREATED):
            message = None
            if isinstance(body, Mapping):
                error = body.get("error")
                message = error.get("message") if isinstance(error, Mapping) else error
            raise ProviderError(
                message or f"Custodial provider responded with {response.status_code}"
            )

        if not isinstance(body, Mapping) or body.get("result") is None:
            raise ProviderError(f"Custodial provider response to {path} carried no result")
        return body["result"]

    async def create_wallet(self, label: str) -> str:
        """Create a new backend wallet and return its address."""
        result = await self._post("/backend-wallet/create", {"label": label})

        if not isinstance(result, Mapping) or result.get("status") != WALLET_CREATED_STATUS:
            raise ProviderError("Error creating user wallet on custodial provider")
        address = result.get("walletAddress")
        if not address:
            raise ProviderError("Custodial provider created a wallet without an address")

        logger.info("Created custodial wallet %s for %s", address, label)
        return str(address)

    async def sign_transaction(
        self,
        wallet_address: str,
        transaction: Mapping[str, Any],
        *,
        idempotency_key: str,
    ) -> str:
        """Sign a normalized transaction with ``wallet_address``."""
        result = await self._post(
            "/backend-wallet/sign-transaction",
            {"transaction": dict(transaction)},
            wallet_address=wallet_address,
            idempotency_key=idempotency_key,
        )
        if not isinstance(result, str):
            raise ProviderError("Custodial provider returned a malformed signed transaction")
        return result

    async def sign_message(
        self,
        wallet_address: str,
        message: str,
        *,
        idempotency_key: str,
        is_bytes: bool = False,
    ) -> str:
        """Sign ``message`` using the personal-sign scheme."""
        result = await self._post(
            "/backend-wallet/sign-message",
            {"message": message, "isBytes": is_bytes},
            wallet_address=wallet_address,
            idempotency_key=idempotency_key,
        )
        if not isinstance(result, str):
            raise ProviderError("Custodial provider returned a malformed signature")
        return result

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _CustodialClientSingleton:
    """Singleton wrapper for CustodialWalletClient."""

    _instance: CustodialWalletClient | None = None

    @classmethod
    def get_instance(cls) -> CustodialWalletClient:
        """Get or create the singleton client instance."""
        if cls._instance is None:
            cls._instance = CustodialWalletClient()
        return cls._instance


def get_custodial_client() -> CustodialWalletClient:
    """Return a singleton custodial wallet client."""
    return _CustodialClientSingleton.get_instance()
