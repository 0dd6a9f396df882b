"""Remote signer: a signer whose keys live with a custodial backend.

``RemoteSigner`` behaves like a local signer to calling code, but every
address lookup and signature is a call to the dSigner API authorized by the
session's access token. The address is only ever taken from the backend.

Example:
    async with RemoteSigner("https://signer.example.com") as signer:
        await signer.sign_in("alice@example.com", "hunter2")
        signature = await signer.sign_message("Test")
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from dsigner.client.base import ChainProvider, Signer, SignerState
from dsigner.core.errors import (
    InvalidTokenError,
    NotSignedInError,
    ProviderError,
    SigningFailedError,
)
from dsigner.core.transactions import message_to_wire, normalize_transaction

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://dsigner-api.project.in.th"
DEFAULT_TIMEOUT_SECONDS = 30.0

_RESIGN_HINT = "Invalid access_token, please set_access_token() or sign_in() again"


@dataclass(frozen=True)
class _Credentials:
    access_token: str
    address: str | None = None


class RemoteSigner(Signer):
    """Signer that delegates every signature to the dSigner API."""

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        provider: ChainProvider | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.provider = provider
        self._credentials: _Credentials | None = None
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @classmethod
    async def from_access_token(
        cls,
        access_token: str,
        api_url: str = DEFAULT_API_URL,
        provider: ChainProvider | None = None,
        **kwargs: Any,
    ) -> RemoteSigner:
        """Build a signer and bind it to an existing session token."""
        signer = cls(api_url, provider, **kwargs)
        return await signer.set_access_token(access_token)

    @property
    def state(self) -> SignerState:
        if self._credentials is None:
            return SignerState.UNBOUND
        if self._credentials.address is None:
            return SignerState.AUTHENTICATED
        return SignerState.BOUND

    @property
    def address(self) -> str | None:
        return self._credentials.address if self._credentials else None

    @property
    def access_token(self) -> str | None:
        return self._credentials.access_token if self._credentials else None

    async def _call(
        self,
        method: str,
        path: str,
        *,
        json_data: Any | None = None,
        access_token: str | None = None,
    ) -> tuple[int, dict[str, Any]]:
        headers = {"Content-Type": "application/json"}
        if access_token is not None:
            headers["access_token"] = access_token

        response = await self._http.request(
            method,
            f"{self.api_url}{path}",
            json=json_data,
            headers=headers,
        )
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return response.status_code, body

    async def _public_call(self, path: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        try:
            _, body = await self._call("POST", path, json_data=dict(payload))
        except httpx.HTTPError as exc:
            raise ProviderError(f"Request to {path} failed: {exc}") from exc
        return body

    async def sign_up(self, email: str, password: str) -> dict[str, Any]:
        """Sign up a new user; the confirmation arrives by email.

        Returns the API body as-is: ``{"user": ...}`` or ``{"error": ...}``.
        """
        return await self._public_call("/auth/signup", {"email": email, "password": password})

    async def request_new_otp(self, email: str) -> dict[str, Any]:
        """Ask for the signup confirmation OTP to be sent again."""
        return await self._public_call("/auth/newOTP", {"email": email})

    async def verify_email(self, token: str) -> dict[str, Any]:
        """Confirm an email address with the token from the confirmation mail."""
        return await self._public_call("/auth/verify", {"token": token})

    async def sign_in(self, email: str, password: str) -> dict[str, Any]:
        """Sign in and bind this signer to the account's wallet.

        Raises:
            ProviderError: Sign-in was rejected or the response was incomplete.
                The signer's state is left unchanged.
        """
        body = await self._public_call("/auth/signin", {"email": email, "password": password})

        user = body.get("user") or {}
        session = body.get("session") or {}
        wallet = user.get("wallet") if isinstance(user, Mapping) else None
        token = session.get("access_token") if isinstance(session, Mapping) else None
        if not wallet or not token:
            raise ProviderError(f"Sign in failed: {body.get('error') or 'incomplete response'}")

        self._credentials = _Credentials(access_token=token, address=wallet)
        logger.debug("Signed in as %s", wallet)
        return body

    async def set_access_token(self, access_token: str) -> RemoteSigner:
        """Adopt an existing session token and fetch its wallet address.

        Raises:
            InvalidTokenError: The backend returned no wallet for the token.
            ProviderError: The backend could not be reached.
            In both cases, and when the lookup is cancelled, the signer is
            reset to ``UNBOUND``.
        """
        try:
            _, body = await self._call("GET", "/wallet/getAddress", access_token=access_token)
        except httpx.HTTPError as exc:
            self._credentials = None
            raise ProviderError(f"Address lookup failed: {exc}") from exc
        except BaseException:
            self._credentials = None
            raise

        wallet = body.get("wallet")
        if not wallet:
            self._credentials = None
            raise InvalidTokenError("Error: Invalid access_token given")

        self._credentials = _Credentials(access_token=access_token, address=wallet)
        return self

    def _require_bound(self) -> _Credentials:
        credentials = self._credentials
        if credentials is None or credentials.address is None:
            raise NotSignedInError("Error: You need to sign in first")
        return credentials

    async def get_address(self) -> str:
        credentials = self._require_bound()
        return credentials.address  # type: ignore[return-value]

    async def _sign(
        self,
        credentials: _Credentials,
        path: str,
        payload: dict[str, Any],
        result_field: str,
        what: str,
    ) -> str:
        try:
            status_code, body = await self._call(
                "POST", path, json_data=payload, access_token=credentials.access_token
            )
        except httpx.HTTPError as exc:
            raise SigningFailedError(f"{what} signing failed: {exc}") from exc

        signed = body.get(result_field)
        if not signed:
            reason = body.get("error") or _RESIGN_HINT
            raise SigningFailedError(f"{what} signing failed: {reason}", status_code=status_code)
        return signed

    async def sign_transaction(self, transaction: Mapping[str, Any]) -> str:
        credentials = self._require_bound()
        populated = await self.populate_transaction(transaction)
        tx_data = normalize_transaction(populated)
        return await self._sign(
            credentials,
            "/wallet/signTransaction",
            {"transaction": tx_data},
            "signedTransaction",
            "Transaction",
        )

    async def sign_message(self, message: str | bytes) -> str:
        credentials = self._require_bound()
        return await self._sign(
            credentials,
            "/wallet/signMessage",
            {"message": message_to_wire(message), "isBytes": isinstance(message, bytes)},
            "signedMessage",
            "Message",
        )

    def connect(self, provider: ChainProvider | None) -> RemoteSigner:
        self.provider = provider
        return self

    async def aclose(self) -> None:
        """Close the HTTP client if this signer created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> RemoteSigner:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
