"""
Pydantic schemas for API request/response models.

Field names follow the wire format the browser and Python signers speak,
which is camelCase for the wallet endpoints.
"""

from .auth import CredentialsRequest, NewOtpRequest, VerifyRequest
from .wallet import (
    SignedMessageResponse,
    SignedTransactionResponse,
    SignMessageRequest,
    SignTransactionRequest,
    WalletAddressResponse,
)

__all__ = [
    "CredentialsRequest", "NewOtpRequest", "VerifyRequest",
    "SignMessageRequest", "SignTransactionRequest",
    "SignedMessageResponse", "SignedTransactionResponse",
    "WalletAddressResponse",
]
