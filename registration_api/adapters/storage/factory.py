"""Factory for the payment-proof object storage adapter."""

from registration_api.adapters.storage.base import AbstractObjectStorage
from registration_api.adapters.storage.in_memory import InMemoryObjectStorage
from registration_api.adapters.storage.supabase_storage import SupabaseObjectStorage
from registration_api.core.config import SupabaseSettings, settings
from registration_api.core.errors import ConfigurationError


def create_object_storage(cfg: SupabaseSettings | None = None) -> AbstractObjectStorage:
    """Instantiate object storage for the configured backend.

    Uploads use the public key: the bucket's own upload policy decides
    whether anonymous registrants may write.

    Raises:
        ConfigurationError: If backend-specific requirements are not met.
    """
    cfg = cfg or settings.supabase
    backend = cfg.backend.lower()

    if backend == "memory":
        return InMemoryObjectStorage(bucket=cfg.storage_bucket)

    if backend == "supabase":
        if not cfg.url or not cfg.anon_key:
            raise ConfigurationError(
                code="configuration_error",
                message="Object storage requires SUPABASE_URL and SUPABASE_ANON_KEY",
            )
        return SupabaseObjectStorage(
            base_url=cfg.url,
            api_key=cfg.anon_key,
            bucket=cfg.storage_bucket,
            timeout_seconds=cfg.timeout_seconds,
        )

    raise ConfigurationError(
        code="configuration_error",
        message=f"Unknown storage backend: '{backend}'. Supported backends: supabase, memory",
    )
