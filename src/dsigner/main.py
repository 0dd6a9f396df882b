"""Main entry point for the dSigner API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dsigner.api import auth_router, system_router, wallet_router
from dsigner.core.errors import (
    DSignerError,
    IdentityUnavailableError,
    InvalidTokenError,
    ProviderError,
    ValidationError,
)
from dsigner.core.settings import settings
from dsigner.services.custodian import get_custodial_client
from dsigner.services.identity import get_identity_client

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Remote Ethereum signing backed by custodial wallets",
    version=settings.app_version,
)

# Browser signers call the API cross-origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

app.include_router(system_router)
app.include_router(auth_router)
app.include_router(wallet_router)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def status_for_error(exc: DSignerError) -> int:
    """Map a domain error onto the HTTP status returned to clients."""
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, IdentityUnavailableError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, InvalidTokenError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, ProviderError):
        return exc.status_code or status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(DSignerError)
async def handle_dsigner_error(request: Request, exc: DSignerError) -> JSONResponse:
    status_code = status_for_error(exc)
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return _error(status_code, str(exc))


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _error(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await get_identity_client().close()
    await get_custodial_client().close()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("dsigner.main:app", host="0.0.0.0", port=settings.port, reload=settings.debug)
