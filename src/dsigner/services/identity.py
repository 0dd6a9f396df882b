"""Identity provider client.

Talks to a GoTrue-compatible auth API (the Supabase auth service) for signup,
password sign-in, OTP resend and bearer-token validation. The provider owns
password and OTP policy; this module only shapes requests and maps failures
onto the dSigner error taxonomy.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from dsigner.core.errors import (
    DSignerError,
    IdentityUnavailableError,
    InvalidTokenError,
    ProviderError,
)
from dsigner.core.settings import settings

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_INTERNAL_SERVER_ERROR = 500


@dataclass(frozen=True)
class IdentityConfig:
    """Immutable configuration for the identity provider."""

    base_url: str
    api_key: str
    timeout_seconds: float


@dataclass(frozen=True)
class Identity:
    """Stable identity resolved from a bearer token."""

    id: str
    email: str | None


def load_identity_config() -> IdentityConfig:
    """Build configuration object from global settings."""
    return IdentityConfig(
        base_url=settings.identity_url.rstrip("/"),
        api_key=settings.identity_api_key,
        timeout_seconds=float(settings.identity_http_timeout_seconds),
    )


def _error_message(response: httpx.Response) -> str:
    """Pull the human readable message out of an auth API error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"Identity provider responded with {response.status_code}"
    if isinstance(body, Mapping):
        for key in ("msg", "error_description", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"Identity provider responded with {response.status_code}"


def _json_object(
    response: httpx.Response, error_cls: type[DSignerError] = ProviderError
) -> dict[str, Any]:
    """Decode a success body, which must be a JSON object."""
    try:
        body = response.json()
    except ValueError as exc:
        raise error_cls(
            f"Identity provider returned a non-JSON body ({response.status_code})"
        ) from exc
    if not isinstance(body, Mapping):
        raise error_cls("Identity provider returned an unexpected response shape")
    return dict(body)


class IdentityProviderClient:
    """HTTP client wrapper for the identity provider."""

    def __init__(
        self,
        config: IdentityConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_identity_config()
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

    def _headers(self, bearer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.config.api_key,
            "Content-Type": "application/json",
        }
        headers["Authorization"] = f"Bearer {bearer or self.config.api_key}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any | None = None,
        params: Mapping[str, str] | None = None,
        bearer: str | None = None,
    ) -> httpx.Response:
        client = await self._ensure_client()
        try:
            response = await client.request(
                method,
                path,
                json=json_data,
                params=params,
                headers=self._headers(bearer),
            )
        except httpx.HTTPError as exc:
            logger.warning("Identity provider request %s %s failed: %s", method, path, exc)
            raise IdentityUnavailableError(
                "Identity provider is unavailable, cannot authenticate right now"
            ) from exc

        if response.status_code >= HTTP_INTERNAL_SERVER_ERROR:
            logger.warning(
                "Identity provider %s %s answered %d", method, path, response.status_code
            )
            raise IdentityUnavailableError(
                f"Identity provider responded with {response.status_code}"
            )
        return response

    async def get_user(self, access_token: str) -> dict[str, Any]:
        """Return the user record owning ``access_token``.

        Raises:
            InvalidTokenError: The provider does not recognize the token.
            IdentityUnavailableError: The provider timed out or failed.
        """
        response = await self._request("GET", "/auth/v1/user", bearer=access_token)
        if response.status_code != HTTP_OK:
            raise InvalidTokenError(_error_message(response))

        user = _json_object(response, IdentityUnavailableError)
        if not user.get("id"):
            raise InvalidTokenError("Identity provider returned no user for token")
        return dict(user)

    async def get_identity(self, access_token: str) -> Identity:
        """Resolve ``access_token`` to its stable identity."""
        user = await self.get_user(access_token)
        return Identity(id=str(user["id"]), email=user.get("email"))

    async def sign_up(self, email: str, password: str) -> dict[str, Any]:
        """Register a new account; the provider emails a confirmation link."""
        response = await self._request(
            "POST",
            "/auth/v1/signup",
            json_data={"email": email, "password": password},
        )
        if response.status_code != HTTP_OK:
            raise ProviderError(_error_message(response), status_code=HTTP_BAD_REQUEST)

        body = _json_object(response)
        # Auto-confirming projects answer with a session wrapping the user.
        user = body.get("user", body)
        if not isinstance(user, Mapping):
            raise ProviderError("Identity provider returned an unexpected response shape")
        return dict(user)

    async def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        """Authenticate with email and password.

        Returns:
            ``{"user": {...}, "session": {"access_token": ..., ...}}``
        """
        response = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json_data={"email": email, "password": password},
        )
        if response.status_code != HTTP_OK:
            raise ProviderError(_error_message(response), status_code=HTTP_BAD_REQUEST)

        body = _json_object(response)
        user = body.pop("user", None)
        if not isinstance(user, Mapping) or not user.get("id") or not body.get("access_token"):
            raise ProviderError("Identity provider returned an incomplete session")
        return {"user": dict(user), "session": body}

    async def resend_signup_otp(self, email: str) -> None:
        """Ask the provider to resend the signup confirmation OTP."""
        response = await self._request(
            "POST",
            "/auth/v1/resend",
            json_data={"type": "signup", "email": email},
        )
        if response.status_code != HTTP_OK:
            raise ProviderError(_error_message(response), status_code=HTTP_BAD_REQUEST)

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _IdentityClientSingleton:
    """Singleton wrapper for IdentityProviderClient."""

    _instance: IdentityProviderClient | None = None

    @classmethod
    def get_instance(cls) -> IdentityProviderClient:
        """Get or create the singleton client instance."""
        if cls._instance is None:
            cls._instance = IdentityProviderClient()
        return cls._instance


def get_identity_client() -> IdentityProviderClient:
    """Return a singleton identity provider client."""
    return _IdentityClientSingleton.get_instance()
