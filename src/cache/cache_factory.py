# src/cache/cache_factory.py — v3
"""Factory for cache store instantiation."""

from __future__ import annotations

from ttlfilecache.cache.file_store import FileCacheStore
from ttlfilecache.config.settings import Settings, load_settings


def create_cache_store(settings: Settings | None = None) -> FileCacheStore:
    """Instantiate the file cache store described by ``settings``.

    Args:
        settings: Application settings. Loaded from the environment when
            omitted.

    Returns:
        Configured FileCacheStore.

    Raises:
        ConfigurationError: If no cache directory can be derived.
    """
    if settings is None:
        settings = load_settings()
    return FileCacheStore(
        settings.cache_directory,
        default_expiration_s=settings.cache_default_expiration_s,
        max_retries=settings.cache_max_retries,
        retry_delay_ms=settings.cache_retry_delay_ms,
        verbose=settings.cache_verbose_logging,
    )
