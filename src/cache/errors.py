# src/cache/errors.py — v1
"""Cache error hierarchy.

Misses, expired entries and unreadable entries are never errors; only the
conditions below reach the caller.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class CacheError(Exception):
    """Base class for all cache store errors."""


class CacheIOError(CacheError):
    """Filesystem failure other than "file not found"."""

    def __init__(
        self, path: Path, operation: str, cause: OSError, key: str | None = None
    ) -> None:
        self.path = path
        self.operation = operation
        self.cause = cause
        self.key = key
        target = f"cache entry {key!r}" if key is not None else "cache directory"
        super().__init__(f"Cannot {operation} {target} at {path}: {cause}")


class SerializationError(CacheError, TypeError):
    """Value graph cannot be represented by the entry codec."""


class UnsupportedConfigurationError(CacheError, ValueError):
    """Requested behaviour is not supported by the file store."""


class CacheBatchError(CacheError):
    """One or more keys of a batch operation failed.

    Successful keys are not rolled back: ``count`` reports how many keys were
    processed, ``errors`` maps each failed key to its exception and
    ``results`` holds whatever a batch read resolved.
    """

    def __init__(
        self,
        operation: str,
        errors: dict[str, Exception],
        count: int = 0,
        results: dict[str, Any] | None = None,
    ) -> None:
        self.operation = operation
        self.errors = errors
        self.count = count
        self.results = results or {}
        super().__init__(
            f"Cache {operation} failed for {len(errors)} key(s): "
            + ", ".join(sorted(errors))
        )
