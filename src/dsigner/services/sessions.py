"""Resolve bearer tokens to custodial wallet bindings."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from dsigner.core.errors import NoBindingError
from dsigner.models import WalletBinding
from dsigner.services.identity import IdentityProviderClient

logger = logging.getLogger(__name__)


def get_binding(db: Session, identity_id: str) -> WalletBinding | None:
    """Return the wallet binding for ``identity_id`` if one exists."""
    return db.execute(
        select(WalletBinding).where(WalletBinding.user_id == identity_id)
    ).scalar_one_or_none()


class SessionResolver:
    """Maps an access token to the wallet bound to its identity.

    Resolution is read-only and is repeated on every call; bindings are only
    ever created by the provisioner during sign-in.
    """

    def __init__(self, db: Session, identity: IdentityProviderClient) -> None:
        self.db = db
        self.identity = identity

    async def resolve(self, access_token: str) -> WalletBinding:
        """Return the binding owned by ``access_token``.

        Raises:
            InvalidTokenError: The identity provider rejects the token or is unreachable.
            NoBindingError: The identity has never signed in, so no wallet exists.
        """
        identity = await self.identity.get_identity(access_token)
        binding = get_binding(self.db, identity.id)
        if binding is None:
            logger.info("No wallet binding for identity %s", identity.id)
            raise NoBindingError("Invalid access token or user not found")
        return binding
