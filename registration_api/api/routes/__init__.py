from __future__ import annotations

from registration_api.api.routes.confirmation import router as confirmation_router
from registration_api.api.routes.health import router as health_router
from registration_api.api.routes.register import router as register_router
from registration_api.api.routes.registrations import router as registrations_router

__all__ = ["confirmation_router", "health_router", "register_router", "registrations_router"]
