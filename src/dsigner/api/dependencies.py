"""Shared API dependencies for collaborators and token extraction."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from dsigner.db.session import get_db
from dsigner.services.custodian import CustodialWalletClient, get_custodial_client
from dsigner.services.identity import IdentityProviderClient, get_identity_client
from dsigner.services.provisioning import WalletProvisioner
from dsigner.services.sessions import SessionResolver
from dsigner.services.signing import SigningGateway

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_identity_client_dep() -> IdentityProviderClient:
    return get_identity_client()


def get_custodial_client_dep() -> CustodialWalletClient:
    return get_custodial_client()


IdentityClientDep = Annotated[IdentityProviderClient, Depends(get_identity_client_dep)]
CustodialClientDep = Annotated[CustodialWalletClient, Depends(get_custodial_client_dep)]


def get_access_token(
    access_token: Annotated[str | None, Header(convert_underscores=False)] = None,
) -> str:
    """Extract the bearer session token from the ``access_token`` header.

    Raises:
        HTTPException: If the header is missing or blank.
    """
    if not access_token or not access_token.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="access_token in the header request is required",
        )
    return access_token.strip()


AccessTokenDep = Annotated[str, Depends(get_access_token)]


def get_session_resolver(db: SessionDep, identity: IdentityClientDep) -> SessionResolver:
    return SessionResolver(db, identity)


SessionResolverDep = Annotated[SessionResolver, Depends(get_session_resolver)]


def get_signing_gateway(
    resolver: SessionResolverDep,
    custodian: CustodialClientDep,
) -> SigningGateway:
    return SigningGateway(resolver, custodian)


def get_wallet_provisioner(db: SessionDep, custodian: CustodialClientDep) -> WalletProvisioner:
    return WalletProvisioner(db, custodian)


SigningGatewayDep = Annotated[SigningGateway, Depends(get_signing_gateway)]
WalletProvisionerDep = Annotated[WalletProvisioner, Depends(get_wallet_provisioner)]
