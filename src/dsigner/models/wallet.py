"""Identity to custodial wallet bindings."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dsigner.db.session import Base
from dsigner.db.time import utcnow


class WalletBinding(Base):
    """The one custodial wallet owned by an identity.

    Rows are insert-only: the unique ``user_id`` index is what keeps
    concurrent first sign-ins from provisioning two wallets for one identity.
    """

    __tablename__ = "wallets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    wallet: Mapped[str] = mapped_column(String(42), nullable=False)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
