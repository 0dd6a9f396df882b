"""Authentication request schemas."""

from pydantic import BaseModel, Field


class CredentialsRequest(BaseModel):
    """Email and password pair used for signup and sign-in."""

    email: str = Field(..., min_length=3, description="Account email address")
    password: str = Field(..., min_length=1, description="Account password")


class NewOtpRequest(BaseModel):
    """Request to resend the signup confirmation OTP."""

    email: str = Field(..., min_length=3, description="Account email address")


class VerifyRequest(BaseModel):
    """Email verification payload."""

    token: str = Field(..., min_length=1, description="Verification token from the confirmation email")
