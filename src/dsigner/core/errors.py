"""Error taxonomy shared by the backend services and the signer client."""

from __future__ import annotations


class DSignerError(RuntimeError):
    """Base class for every dSigner failure."""


class ValidationError(DSignerError):
    """A required request field is missing or malformed."""


class InvalidTokenError(DSignerError):
    """The access token is unrecognized or has no wallet bound to it."""


class NoBindingError(InvalidTokenError):
    """The token's identity is valid but no wallet binding exists yet."""


class IdentityUnavailableError(InvalidTokenError):
    """The identity provider could not be reached to authenticate the token."""


class ProviderError(DSignerError):
    """A downstream identity or custodial provider failed or misbehaved."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotSignedInError(DSignerError):
    """The signer was used before an address was bound to it."""


class SigningFailedError(DSignerError):
    """The gateway answered without a signed artifact."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
