"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (one per bounded context)
- Error handlers (centralized domain-to-HTTP mapping)
- Security middleware (headers, rate limiting)
- Logging configuration
- Startup schema creation and shutdown of pooled resources

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from allocator.core.config import settings
from allocator.infrastructure.strategies.schema import create_schema
from allocator.interfaces.health import router as health_router
from allocator.interfaces.strategies.dependencies import close_resources, get_engine
from allocator.interfaces.strategies.router import router as strategies_router
from allocator.shared.errors.handlers import register_error_handlers
from allocator.shared.logging import configure_logging
from allocator.shared.security.headers import SecurityHeadersMiddleware
from allocator.shared.security.rate_limiting import (
    limiter,
    rate_limit_exceeded_handler,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: prepare the schema, release pooled resources."""
    if settings.auto_create_schema:
        create_schema(get_engine())
    logger.info("%s %s started", settings.project_name, settings.version)

    yield

    close_resources()
    logger.info("%s stopped", settings.project_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and security middleware.
    This is the composition root of the application.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # --- Security Middleware ---
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=not settings.debug)

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(strategies_router, prefix="/api/v1")

    return app


app = create_app()
