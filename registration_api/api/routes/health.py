from __future__ import annotations

from fastapi import APIRouter

from registration_api.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Does not touch the store, storage or mail relay; it only reports which
    backends this process is configured for.

    Returns:
        dict: ``status`` ("ok"), the event name and the configured backends.
    """

    return {
        "status": "ok",
        "event": settings.app.event_name,
        "store_backend": settings.supabase.backend,
        "mail_backend": settings.mail.backend,
    }
