"""Wallet endpoint schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WalletAddressResponse(BaseModel):
    """Address bound to the caller's identity."""

    wallet: str = Field(..., description="Checksummed custodial wallet address")


class SignTransactionRequest(BaseModel):
    """Transaction to be signed by the caller's custodial wallet."""

    transaction: dict[str, Any] = Field(..., description="Transaction fields, numeric values hex-encoded")


class SignedTransactionResponse(BaseModel):
    """Signed, serialized transaction relayed from the custodial provider."""

    signed_transaction: str = Field(..., alias="signedTransaction")

    model_config = ConfigDict(populate_by_name=True)


class SignMessageRequest(BaseModel):
    """Message to be signed with the personal-sign scheme."""

    message: str = Field(..., min_length=1, description="UTF-8 text, or 0x-prefixed hex when isBytes")
    is_bytes: bool = Field(False, alias="isBytes", description="Treat message as hex-encoded bytes")

    model_config = ConfigDict(populate_by_name=True)


class SignedMessageResponse(BaseModel):
    """Signature relayed from the custodial provider."""

    signed_message: str = Field(..., alias="signedMessage")

    model_config = ConfigDict(populate_by_name=True)
