"""Service layer for identity resolution, provisioning and signing."""

from .custodian import CustodialWalletClient, get_custodial_client
from .identity import Identity, IdentityProviderClient, get_identity_client
from .provisioning import WalletProvisioner
from .sessions import SessionResolver, get_binding
from .signing import SigningGateway

__all__ = [
    "CustodialWalletClient", "get_custodial_client",
    "Identity", "IdentityProviderClient", "get_identity_client",
    "WalletProvisioner",
    "SessionResolver", "get_binding",
    "SigningGateway",
]
