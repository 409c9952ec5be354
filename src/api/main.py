"""FastAPI application for BoxCycle API.

Provides the main application instance with routers and exception
handlers configured.
"""

import logging
import sys
import time as _time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

# Configure logging to stdout for uvicorn to capture
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
# Ensure our application loggers are captured
logging.getLogger("src").setLevel(logging.INFO)
from fastapi.responses import JSONResponse

from src.api.routes import cron, delivery, subscriptions
from src.db.connection import init_db
from src.errors import (
    CollaboratorError,
    ConflictError,
    DomainError,
    NotFoundError,
    PreconditionError,
)

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

# Module-level state for health endpoint
_startup_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Async lifespan: create tables on startup."""
    global _startup_time

    _startup_time = _time.time()
    init_db()
    logger.info("BoxCycle API started")
    yield
    logger.info("BoxCycle API shutting down")


app = FastAPI(
    title="BoxCycle API",
    description="Delivery cycle scheduling and subscription order generation",
    version=API_VERSION,
    lifespan=lifespan,
)


def _status_for(exc: DomainError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, PreconditionError):
        return 422
    if isinstance(exc, CollaboratorError):
        return 502
    if isinstance(exc, ConflictError):
        return 409
    return 500


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Handle DomainError exceptions with consistent format.

    Args:
        request: The incoming request.
        exc: The DomainError exception.

    Returns:
        JSONResponse with error details.
    """
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": exc.code,
            "message": str(exc),
            "remediation": exc.remediation,
        },
    )


# Include routers
app.include_router(delivery.router, prefix="/api/v1")
app.include_router(cron.router, prefix="/api/v1")
app.include_router(subscriptions.router, prefix="/api/v1")


@app.get("/health")
def health_check() -> dict:
    """Health check endpoint with process uptime."""
    uptime = int(_time.time() - _startup_time) if _startup_time else 0
    return {
        "status": "ok",
        "version": API_VERSION,
        "uptime_seconds": uptime,
    }
