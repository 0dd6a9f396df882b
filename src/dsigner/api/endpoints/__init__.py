"""API endpoint modules."""

from .auth import router as auth_router
from .system import router as system_router
from .wallet import router as wallet_router

__all__ = [
    "auth_router",
    "system_router",
    "wallet_router",
]
