"""Main FastAPI application entry point."""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from authgate.api.dependencies import get_client_ip
from authgate.api.gate import TRUSTED_HEADERS, USER_EMAIL_HEADER, USER_ID_HEADER, GateAction, RequestGate
from authgate.api.v1.endpoints.auth.routes import router as auth_router
from authgate.api.v1.endpoints.health.routes import router as health_router
from authgate.config import Settings, get_settings
from authgate.core.auth.token_codec import TokenCodec
from authgate.core.exceptions import (
    AccountLockedException,
    DomainException,
    RateLimitExceededException,
)
from authgate.infrastructure.database.connection import DatabaseManager
from authgate.utils.logging import setup_logging

APP_TITLE = "Authgate"
APP_VERSION = "1.0.0"

logger = logging.getLogger("authgate")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events."""
    settings: Settings = app.state.settings
    setup_logging(settings)
    logger.info(f"Starting {APP_TITLE}...")

    db_manager = DatabaseManager(settings)
    try:
        await db_manager.initialize()
        await db_manager.create_tables()
        logger.info("Database tables created")
    except Exception:
        logger.exception("Startup failed")
        await db_manager.close()
        raise

    app.state.db_manager = db_manager
    logger.info(f"{APP_TITLE} started successfully")

    yield

    logger.info(f"Shutting down {APP_TITLE}...")
    await db_manager.close()
    logger.info("Database connections closed")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Application settings, defaults to the environment

    Returns:
        Configured application; the database is opened by the lifespan
    """
    settings = settings or get_settings()
    token_codec = TokenCodec.from_settings(settings)

    app = FastAPI(
        title=APP_TITLE,
        description="Authentication service with rotating refresh tokens, lockout and rate limiting",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.token_codec = token_codec
    app.state.request_gate = RequestGate.from_settings(settings, token_codec)

    app.include_router(health_router, prefix=settings.api_prefix)
    app.include_router(auth_router, prefix=settings.api_prefix)

    register_exception_handlers(app)

    register_middleware(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint."""
        return {
            "message": f"{APP_TITLE} API",
            "version": APP_VERSION,
            "docs": "/docs",
        }

    @app.get("/health", include_in_schema=False)
    async def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy", "service": "authgate"}

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException):
        """Handle custom domain exceptions."""
        content = {"error": exc.message, "type": exc.__class__.__name__}
        if exc.details:
            content["details"] = exc.details
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(AccountLockedException)
    async def account_locked_handler(request: Request, exc: AccountLockedException):
        """Handle locked accounts, revealing when the lock expires."""
        content = {"error": exc.message, "type": "AccountLocked"}
        if exc.locked_until is not None:
            content["lockedUntil"] = exc.locked_until.isoformat() + "Z"
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RateLimitExceededException)
    async def rate_limit_handler(request: Request, exc: RateLimitExceededException):
        """Handle throttled requests with rate limit headers."""
        result = exc.result
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "Too many requests", "message": exc.message, "type": "RateLimitExceeded"},
            headers={
                "X-RateLimit-Limit": str(result.limit),
                "X-RateLimit-Remaining": str(result.remaining),
                "X-RateLimit-Reset": result.reset_at.isoformat() + "Z",
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle malformed request bodies."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation error", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail, "type": "HTTPException"},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)

        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "type": "InternalError"},
        )


def register_middleware(app: FastAPI) -> None:
    """
    Register custom middleware.

    The last registered middleware runs first: request logging wraps the
    security headers, which wrap the request gate.
    """

    @app.middleware("http")
    async def request_gate_middleware(request: Request, call_next):
        """Authenticate requests at the edge and forward the verified identity."""
        gate: RequestGate = request.app.state.request_gate
        settings: Settings = request.app.state.settings

        # identity headers are only ever set from a verified token
        headers = [
            (name, value)
            for name, value in request.scope["headers"]
            if name.decode("latin-1").lower() not in TRUSTED_HEADERS
        ]

        decision = gate.classify(
            request.url.path,
            request.headers.get("authorization"),
            request.cookies.get(settings.refresh_cookie_name),
        )

        if decision.action == GateAction.REJECT:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "Unauthorized", "message": decision.message},
            )

        if decision.action == GateAction.REDIRECT:
            return RedirectResponse(url=decision.location, status_code=status.HTTP_307_TEMPORARY_REDIRECT)

        if decision.action == GateAction.FORWARD_AUTHENTICATED:
            headers.append((USER_ID_HEADER.encode("latin-1"), str(decision.user_id).encode("latin-1")))
            headers.append((USER_EMAIL_HEADER.encode("latin-1"), decision.email.encode("utf-8")))

        request.scope["headers"] = headers
        return await call_next(request)

    @app.middleware("http")
    async def security_headers_middleware(request: Request, call_next):
        """Add security headers to responses."""
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Log all HTTP requests."""
        start_time = request.state.start_time = time.time()
        client_ip = get_client_ip(request)

        logger.info(f"Request started: {request.method} {request.url.path} from {client_ip}")

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} time={process_time:.3f}s"
        )

        return response


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "authgate.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
