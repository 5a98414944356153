# src/cache/base_cache_store.py — v2
"""Abstract cache store interface."""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any, Awaitable, Callable

from ttlfilecache.cache.models import EntryLookup


class BaseCacheStore(ABC):
    """Unified interface for TTL key/value cache backends."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None once the key is absent or expired."""

    @abstractmethod
    async def mget(self, keys: str | Iterable[str]) -> dict[str, Any]:
        """Resolve several keys concurrently; absent keys are omitted."""

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: float | None = None,
        *,
        refresh: bool = False,
    ) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""

    @abstractmethod
    async def mset(
        self, mapping: Mapping[str, Any], ttl_seconds: float | None = None
    ) -> int:
        """Store every item of ``mapping``; returns the number written."""

    @abstractmethod
    async def delete(self, keys: str | Iterable[str]) -> int:
        """Remove entries; returns the number of entries actually removed."""

    @abstractmethod
    async def flush(self) -> None:
        """Remove every entry."""

    @abstractmethod
    async def lookup(self, key: str) -> EntryLookup:
        """Inspect a key once, without waiting for a writer."""

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Any | Awaitable[Any]],
        ttl_seconds: float | None = None,
    ) -> Any:
        """Return the cached value, computing and storing it on a miss.

        ``factory`` may be a plain callable or return an awaitable.
        """
        value = await self.get(key)
        if value is not None:
            return value
        value = factory()
        if inspect.isawaitable(value):
            value = await value
        await self.set(key, value, ttl_seconds)
        return value
