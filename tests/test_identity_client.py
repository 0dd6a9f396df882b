# tests/test_identity_client.py
"""Tests for the identity provider HTTP client."""

import httpx
import pytest

from dsigner.core.errors import IdentityUnavailableError, InvalidTokenError, ProviderError
from dsigner.services.identity import IdentityConfig, IdentityProviderClient

CONFIG = IdentityConfig(base_url="https://auth.test", api_key="service-key", timeout_seconds=2.0)


def _client(handler) -> IdentityProviderClient:
    return IdentityProviderClient(CONFIG, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_get_identity_sends_token_and_api_key() -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json={"id": "user-1", "email": "a@example.com"})

    client = _client(handler)
    identity = await client.get_identity("user-token")
    await client.close()

    assert identity.id == "user-1"
    assert identity.email == "a@example.com"
    request = seen["request"]
    assert request.url.path == "/auth/v1/user"
    assert request.headers["Authorization"] == "Bearer user-token"
    assert request.headers["apikey"] == "service-key"


@pytest.mark.asyncio
async def test_rejected_token_is_invalid() -> None:
    client = _client(lambda request: httpx.Response(401, json={"msg": "invalid JWT"}))
    with pytest.raises(InvalidTokenError, match="invalid JWT"):
        await client.get_user("bad")


@pytest.mark.asyncio
async def test_timeout_means_cannot_authenticate() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = _client(handler)
    with pytest.raises(IdentityUnavailableError):
        await client.get_user("token")


@pytest.mark.asyncio
async def test_server_error_means_cannot_authenticate() -> None:
    client = _client(lambda request: httpx.Response(503, text="down"))
    with pytest.raises(InvalidTokenError):
        await client.get_user("token")


@pytest.mark.asyncio
async def test_sign_in_splits_user_and_session() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/auth/v1/token"
        assert request.url.params["grant_type"] == "password"
        return httpx.Response(
            200,
            json={
                "access_token": "jwt",
                "token_type": "bearer",
                "expires_in": 3600,
                "refresh_token": "r",
                "user": {"id": "user-1", "email": "a@example.com"},
            },
        )

    result = await _client(handler).sign_in_with_password("a@example.com", "pw")
    assert result["user"]["id"] == "user-1"
    assert result["session"]["access_token"] == "jwt"
    assert "user" not in result["session"]


@pytest.mark.asyncio
async def test_sign_in_failure_carries_provider_message() -> None:
    client = _client(
        lambda request: httpx.Response(
            400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"}
        )
    )
    with pytest.raises(ProviderError, match="Invalid login credentials") as exc_info:
        await client.sign_in_with_password("a@example.com", "wrong")
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_sign_up_unwraps_auto_confirmed_session() -> None:
    client = _client(
        lambda request: httpx.Response(
            200, json={"access_token": "jwt", "user": {"id": "user-2", "email": "b@example.com"}}
        )
    )
    user = await client.sign_up("b@example.com", "pw")
    assert user == {"id": "user-2", "email": "b@example.com"}


@pytest.mark.asyncio
async def test_resend_posts_signup_type() -> None:
    bodies: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.content)
        return httpx.Response(200, json={})

    await _client(handler).resend_signup_otp("b@example.com")
    assert b'"type":"signup"' in bodies[0].replace(b" ", b"")


@pytest.mark.asyncio
async def test_non_json_user_body_means_cannot_authenticate() -> None:
    client = _client(lambda request: httpx.Response(200, text="<html>gateway</html>"))
    with pytest.raises(IdentityUnavailableError, match="non-JSON"):
        await client.get_user("token")


@pytest.mark.asyncio
async def test_non_object_user_body_means_cannot_authenticate() -> None:
    client = _client(lambda request: httpx.Response(200, json=["not", "a", "user"]))
    with pytest.raises(IdentityUnavailableError, match="unexpected response shape"):
        await client.get_user("token")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>gateway</html>"),
        httpx.Response(200, json=[1, 2]),
    ],
)
async def test_malformed_sign_in_body_is_provider_error(response: httpx.Response) -> None:
    client = _client(lambda request: response)
    with pytest.raises(ProviderError):
        await client.sign_in_with_password("a@example.com", "pw")


@pytest.mark.asyncio
async def test_malformed_sign_up_body_is_provider_error() -> None:
    client = _client(lambda request: httpx.Response(200, json={"user": "nobody"}))
    with pytest.raises(ProviderError, match="unexpected response shape"):
        await client.sign_up("b@example.com", "pw")
