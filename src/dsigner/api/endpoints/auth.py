"""Authentication endpoints: signup, sign-in, OTP resend and email verification."""

from __future__ import annotations

import logging
from importlib import resources

from fastapi import APIRouter, status
from fastapi.responses import HTMLResponse

from dsigner.api.dependencies import IdentityClientDep, WalletProvisionerDep
from dsigner.core.errors import IdentityUnavailableError, InvalidTokenError, ProviderError
from dsigner.schemas.auth import CredentialsRequest, NewOtpRequest, VerifyRequest
from dsigner.services.identity import Identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.get("/welcome", response_class=HTMLResponse, summary="Landing page after email confirmation")
async def welcome() -> HTMLResponse:
    """Serve the page users land on after confirming their email."""
    page = resources.files("dsigner.static").joinpath("welcome.html").read_text(encoding="utf-8")
    return HTMLResponse(page)


@router.post("/verify", summary="Verify a user's email with a confirmation token")
async def verify_email(payload: VerifyRequest, identity: IdentityClientDep) -> dict[str, object]:
    try:
        user = await identity.get_user(payload.token)
    except IdentityUnavailableError:
        raise
    except InvalidTokenError as exc:
        raise ProviderError(str(exc), status_code=status.HTTP_400_BAD_REQUEST) from exc
    return {"message": "Email verified successfully!", "user": user}


@router.post("/signup", summary="Sign up with email and password")
async def sign_up(payload: CredentialsRequest, identity: IdentityClientDep) -> dict[str, object]:
    """Create an account; the identity provider emails a confirmation link."""
    user = await identity.sign_up(payload.email, payload.password)
    logger.info("Signed up identity %s", user.get("id"))
    return {"user": user}


@router.post("/newOTP", summary="Resend the signup OTP")
async def new_otp(payload: NewOtpRequest, identity: IdentityClientDep) -> dict[str, str]:
    await identity.resend_signup_otp(payload.email)
    return {"message": "New OTP sent"}


@router.post("/signin", summary="Sign in and provision a wallet on first use")
async def sign_in(
    payload: CredentialsRequest,
    identity: IdentityClientDep,
    provisioner: WalletProvisionerDep,
) -> dict[str, object]:
    """Authenticate with email and password.

    The first successful sign-in for an identity creates its custodial wallet;
    later sign-ins return the same address. The response carries the user
    (with ``wallet``) and the session holding the ``access_token``.
    """
    result = await identity.sign_in_with_password(payload.email, payload.password)
    user = result["user"]
    wallet = await provisioner.ensure_wallet(
        Identity(id=str(user["id"]), email=user.get("email"))
    )
    return {"user": {**user, "wallet": wallet}, "session": result["session"]}
