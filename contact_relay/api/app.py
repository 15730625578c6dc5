"""FastAPI application factory for the contact relay API.

This module provides the main FastAPI application with all routes and middleware.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contact_relay.api.broadcast import BroadcastRegistry
from contact_relay.api.contact import get_store
from contact_relay.api.contact import router as contact_router
from contact_relay.api.errors import register_exception_handlers
from contact_relay.api.middleware import RateLimitMiddleware, SecurityHeadersMiddleware
from contact_relay.api.models import HealthResponse
from contact_relay.api.storage import ContactStore
from contact_relay.config import Settings
from contact_relay.version import __version__

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["health"])


@health_router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Report process uptime and whether the database answers a trivial query",
)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    A failing database check is reported as ``db: "down"``; the endpoint
    itself still answers 200.
    """
    db_up = await get_store(request).ping()
    return HealthResponse(
        ok=True,
        uptime=time.monotonic() - request.app.state.started_at,
        db="up" if db_up else "down",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Creates the schema on startup and releases the connection pool on
    shutdown.

    Args:
        app: FastAPI application instance

    Yields:
        None during application runtime
    """
    # Startup
    logger.info("Starting contact relay API")
    logger.info("Version: %s", __version__)
    await app.state.store.create_schema()

    yield

    # Shutdown
    logger.info("Shutting down contact relay API")
    await app.state.store.dispose()


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ContactStore] = None,
    registry: Optional[BroadcastRegistry] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Runtime settings, read from the environment if omitted
        store: Persistence gateway, built from ``settings.database_url`` if omitted
        registry: Broadcast registry, a fresh one if omitted

    Returns:
        Configured FastAPI application instance
    """
    settings = settings if settings is not None else Settings.from_env()

    app = FastAPI(
        title="Contact Relay API",
        description="""
        Contact form API with real-time notifications.

        ## Features

        - **Contact Form**: Submit and list contact form submissions
        - **Real-time**: Subscribe to new submissions over Server-Sent Events
        - **Health**: Uptime and database status

        ## Storage

        - Submissions are stored in the `contact_messages` table
        - Records are immutable once created
        """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/docs.json",
    )

    app.state.settings = settings
    if store is None:
        store = ContactStore.from_url(settings.database_url)
    app.state.store = store
    # an empty registry is falsy, so compare against None
    app.state.registry = registry if registry is not None else BroadcastRegistry()
    app.state.started_at = time.monotonic()

    # Middleware, outermost last; rejected requests still get CORS and security headers
    app.add_middleware(RateLimitMiddleware, limit=settings.rate_limit_per_minute)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    register_exception_handlers(app)

    # Include routers; also served under /api for existing clients
    for prefix, in_schema in (("", True), ("/api", False)):
        app.include_router(health_router, prefix=prefix, include_in_schema=in_schema)
        app.include_router(contact_router, prefix=prefix, include_in_schema=in_schema)

    # Root endpoint
    @app.get(
        "/",
        summary="API Root",
        description="Get basic information about the API",
        tags=["root"],
    )
    async def root() -> JSONResponse:
        """Root endpoint providing API information.

        Returns:
            JSONResponse with API details
        """
        return JSONResponse(
            content={
                "name": "Contact Relay API",
                "version": __version__,
                "description": "Contact form API with real-time notifications",
                "docs": "/docs",
                "openapi": "/docs.json",
            }
        )

    return app

