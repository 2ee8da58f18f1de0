from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from registration_api.api.deps import close_dependencies
from registration_api.api.routes import (
    confirmation_router,
    health_router,
    register_router,
    registrations_router,
)
from registration_api.core.config import settings
from registration_api.core.cors import cors_middleware
from registration_api.core.exception_handlers import setup_exception_handlers
from registration_api.core.logging import configure_logging
from registration_api.core.middleware import request_id_middleware

OPENAPI_TAGS = [
    {
        "name": "Registration",
        "description": "Team registration with per-email rate limiting.",
    },
    {
        "name": "Notifications",
        "description": "Registration confirmation emails.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_dependencies()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Codigo Registration API",
        description=(
            "Registration intake for the Codigo coding competition: validates "
            "team registrations, stores the payment screenshot, enforces a "
            "per-email limit of registrations per rolling window and sends "
            "confirmation emails."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    # Middleware (last registered runs first)
    app.middleware("http")(cors_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(register_router)
    app.include_router(registrations_router)
    app.include_router(confirmation_router)
    app.include_router(health_router)

    return app
