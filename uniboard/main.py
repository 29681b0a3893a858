"""
UniBoard - University notice board

Main FastAPI application with security hardening.
"""

import asyncio
import contextlib
import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from uniboard import __version__
from uniboard.api.v1.api import api_router
from uniboard.auth.jwt import get_token_service
from uniboard.auth.rate_limit import InMemoryLoginRateLimiter, NoopLoginRateLimiter
from uniboard.core import config
from uniboard.core.database import close_db, engine, init_db
from uniboard.core.errors import INVALID_REQUEST, MISSING_REQUIRED_FIELDS, UniboardError
from uniboard.core.logging_setup import configure_logging
from uniboard.schemas.common import ErrorResponse, HealthResponse
from uniboard.services.maintenance import (
    create_super_admin_if_needed,
    run_refresh_token_cleanup,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Application Lifespan (startup/shutdown)
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    configure_logging(config.LOG_LEVEL, config.LOG_JSON)
    logger.info("Starting UniBoard API (%s)", config.ENVIRONMENT)

    # Fail fast on unsafe secrets
    get_token_service()

    await init_db()
    logger.info("Database initialized")

    await create_super_admin_if_needed()

    cleanup = asyncio.create_task(
        run_refresh_token_cleanup(config.REFRESH_TOKEN_CLEANUP_INTERVAL_SECONDS)
    )

    yield

    logger.info("Shutting down UniBoard API")
    cleanup.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await cleanup
    await close_db()


# =============================================================================
# Security Middleware
# =============================================================================

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        # HSTS only makes sense behind HTTPS
        if config.is_production():
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add unique request ID for tracing."""

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("X-Request-ID") or secrets.token_urlsafe(8)
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


# =============================================================================
# Error Handlers
# =============================================================================

async def uniboard_error_handler(request: Request, exc: UniboardError):
    """Render a domain error with its documented status and message."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    elif exc.detail != exc.message:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(),
        headers=exc.headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed requests are client input faults, reported as 400."""
    errors = exc.errors()
    logger.info("%s %s invalid request: %s", request.method, request.url.path, errors)
    missing = any(error.get("type") == "missing" for error in errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error=MISSING_REQUIRED_FIELDS if missing else INVALID_REQUEST).model_dump(),
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to prevent information leakage."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.exception("[%s] Unhandled exception", request_id)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "An internal error occurred",
            "request_id": request_id,
        },
    )


# =============================================================================
# FastAPI Application
# =============================================================================

def create_app() -> FastAPI:
    app = FastAPI(
        title="UniBoard API",
        version=__version__,
        description="University notice board: authentication and account management",
        lifespan=lifespan,
        docs_url=None if config.is_production() else "/docs",
        redoc_url=None,
    )

    if config.RATE_LIMIT_ENABLED:
        app.state.login_limiter = InMemoryLoginRateLimiter(
            max_attempts=config.LOGIN_MAX_ATTEMPTS,
            window=config.LOGIN_WINDOW_SECONDS,
        )
    else:
        app.state.login_limiter = NoopLoginRateLimiter()

    # Order matters - last added runs first
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    trusted_hosts = config.get_trusted_hosts()
    if trusted_hosts and "*" not in trusted_hosts:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=trusted_hosts)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_cors_allow_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    forwarded_allow_ips = config.get_forwarded_allow_ips()
    if forwarded_allow_ips:
        app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=forwarded_allow_ips)

    app.add_exception_handler(UniboardError, uniboard_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        db_status = "healthy"
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning("Health check database probe failed: %s", e)
            db_status = "unhealthy"

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            timestamp=datetime.now(timezone.utc),
            version=__version__,
            database=db_status,
        )

    app.include_router(api_router, prefix=config.API_PREFIX)

    return app


app = create_app()


# =============================================================================
# Development Server
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "uniboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not config.is_production(),
        log_level="info",
    )
