"""
Lead Unlock Credit Economy API - Main Application.

Wires settings, logging and the routers for unlocks, wallets, compatibility
scoring and payment webhooks under /api/v1.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from config.logging_setup import configure_logging
from config.settings import get_settings
from domain.errors import StoreError

settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Lead Unlock Credit Economy API",
    description="Credit wallets, lead unlocks and compatibility matching for student housing",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Origins come from CORS_ORIGINS; "*" only in local development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    # Storage details stay in the log; clients get a generic retryable error.
    logger.error("Unhandled storage failure", extra={"path": request.url.path, "error_message": str(exc)})
    return JSONResponse(
        status_code=503,
        content={"error": "Service temporarily unavailable", "detail": None, "status_code": 503},
    )


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Reports the API version and which store backend this process is wired to.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "lead-unlock-credit-economy-api",
        "store_backend": settings.store_backend,
    }


@app.get("/", tags=["Root"])
def root():
    return {
        "message": "Lead Unlock Credit Economy API",
        "version": __version__,
        "docs": "/docs",
        "endpoints": {
            "unlock": "/api/v1/leads/{lead_id}/unlock",
            "quote": "/api/v1/leads/{lead_id}/quote",
            "wallet": "/api/v1/wallet/{account_id}",
            "compatibility": "/api/v1/compatibility",
            "topup_webhook": "/api/v1/topups/webhook",
        },
    }


from api.routers import compatibility, topups, unlocks, wallet  # noqa: E402

app.include_router(unlocks.router, prefix="/api/v1", tags=["Unlocks"])
app.include_router(wallet.router, prefix="/api/v1", tags=["Wallet"])
app.include_router(compatibility.router, prefix="/api/v1", tags=["Compatibility"])
app.include_router(topups.router, prefix="/api/v1", tags=["Top-ups"])
