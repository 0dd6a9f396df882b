"""HTTP API for the dSigner backend."""

from .endpoints import auth_router, system_router, wallet_router

__all__ = ["auth_router", "system_router", "wallet_router"]
