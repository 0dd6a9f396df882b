"""Lazy custodial wallet provisioning on first sign-in."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dsigner.core.errors import ProviderError
from dsigner.models import WalletBinding
from dsigner.services.custodian import CustodialWalletClient
from dsigner.services.identity import Identity
from dsigner.services.sessions import get_binding

logger = logging.getLogger(__name__)


class WalletProvisioner:
    """Ensures each identity owns exactly one custodial wallet."""

    def __init__(self, db: Session, custodian: CustodialWalletClient) -> None:
        self.db = db
        self.custodian = custodian

    async def ensure_wallet(self, identity: Identity) -> str:
        """Return the identity's wallet address, creating the wallet on first use.

        Concurrent first sign-ins may both create a custodial wallet, but only
        one insert survives the unique ``user_id`` constraint; the loser
        re-reads and returns the winner's address.

        Raises:
            ProviderError: The custodial provider failed to create a wallet.
                Nothing is persisted in that case.
        """
        existing = get_binding(self.db, identity.id)
        if existing is not None:
            return existing.wallet

        address = await self.custodian.create_wallet(label=identity.id)

        self.db.add(WalletBinding(user_id=identity.id, email=identity.email, wallet=address))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            winner = get_binding(self.db, identity.id)
            if winner is None:
                raise ProviderError("Error creating user wallet binding") from None
            logger.info(
                "Lost wallet provisioning race for %s; discarding %s in favour of %s",
                identity.id,
                address,
                winner.wallet,
            )
            return winner.wallet

        logger.info("Bound wallet %s to identity %s", address, identity.id)
        return address
