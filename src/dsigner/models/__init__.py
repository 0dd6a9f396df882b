"""SQLAlchemy models for the dSigner backend."""

from .wallet import WalletBinding

__all__ = ["WalletBinding"]
