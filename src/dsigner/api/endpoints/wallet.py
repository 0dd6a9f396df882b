"""Wallet endpoints: address lookup and delegated signing."""

from __future__ import annotations

from fastapi import APIRouter

from dsigner.api.dependencies import AccessTokenDep, SessionResolverDep, SigningGatewayDep
from dsigner.schemas.wallet import (
    SignedMessageResponse,
    SignedTransactionResponse,
    SignMessageRequest,
    SignTransactionRequest,
    WalletAddressResponse,
)

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get("/getAddress", response_model=WalletAddressResponse)
async def get_address(
    access_token: AccessTokenDep,
    resolver: SessionResolverDep,
) -> WalletAddressResponse:
    """Return the wallet bound to the caller's access token."""
    binding = await resolver.resolve(access_token)
    return WalletAddressResponse(wallet=binding.wallet)


@router.post("/signTransaction", response_model=SignedTransactionResponse)
async def sign_transaction(
    payload: SignTransactionRequest,
    access_token: AccessTokenDep,
    gateway: SigningGatewayDep,
) -> SignedTransactionResponse:
    """Sign a transaction with the caller's custodial wallet."""
    signed = await gateway.sign_transaction(access_token, payload.transaction)
    return SignedTransactionResponse(signed_transaction=signed)


@router.post("/signMessage", response_model=SignedMessageResponse)
async def sign_message(
    payload: SignMessageRequest,
    access_token: AccessTokenDep,
    gateway: SigningGatewayDep,
) -> SignedMessageResponse:
    """Sign a message with the caller's custodial wallet."""
    signed = await gateway.sign_message(access_token, payload.message, is_bytes=payload.is_bytes)
    return SignedMessageResponse(signed_message=signed)
