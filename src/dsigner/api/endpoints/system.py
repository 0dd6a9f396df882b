"""Service metadata and liveness endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from dsigner.core.settings import settings

router = APIRouter(tags=["system"])


@router.get("/")
async def root() -> dict[str, str]:
    """Return a simple greeting."""
    return {"message": "Hello!"}


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok", "version": settings.app_version}
