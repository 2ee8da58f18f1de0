"""Factory for the registration table adapter."""

import logging

from registration_api.adapters.store.base import RegistrationTable
from registration_api.adapters.store.in_memory import create_in_memory_table
from registration_api.adapters.store.supabase_rest import SupabaseRestView
from registration_api.core.config import SupabaseSettings, settings
from registration_api.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


def create_registration_table(cfg: SupabaseSettings | None = None) -> RegistrationTable:
    """Instantiate the registration table for the configured backend.

    Returns:
        RegistrationTable exposing public and privileged views.

    Raises:
        ConfigurationError: If backend-specific requirements are not met.
    """
    cfg = cfg or settings.supabase
    backend = cfg.backend.lower()

    if backend == "memory":
        logger.warning("store.in_memory_backend", extra={"reason": "SUPABASE_BACKEND=memory"})
        return create_in_memory_table()

    if backend == "supabase":
        if not cfg.url or not cfg.anon_key:
            raise ConfigurationError(
                code="configuration_error",
                message="Registration store requires SUPABASE_URL and SUPABASE_ANON_KEY",
            )
        if not cfg.service_role_key:
            # The limiter will fail closed until the key is provided.
            logger.warning(
                "store.service_role_key_missing",
                extra={"hint": "Set SUPABASE_SERVICE_ROLE_KEY; rate-limit checks will be rejected"},
            )
        return RegistrationTable(
            public_view=SupabaseRestView(
                base_url=cfg.url,
                table=cfg.registrations_table,
                api_key=cfg.anon_key,
                tier="public",
                timeout_seconds=cfg.timeout_seconds,
            ),
            privileged_view=SupabaseRestView(
                base_url=cfg.url,
                table=cfg.registrations_table,
                api_key=cfg.service_role_key,
                tier="privileged",
                timeout_seconds=cfg.timeout_seconds,
            ),
        )

    raise ConfigurationError(
        code="configuration_error",
        message=f"Unknown store backend: '{backend}'. Supported backends: supabase, memory",
    )
