# src/cache/models.py — v2
"""Cache domain models: CacheEntry and EntryLookup."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

EntryStatus = Literal["valid", "expired", "corrupt", "absent"]


class CacheEntry(BaseModel):
    """Durable record pairing a cached value with its timestamps.

    Timestamps are milliseconds since the epoch. ``key`` is kept for
    debugging only; addressing always goes through the key digest.
    """

    key: str
    retrieved_at: int
    expires_at: int
    value: Any = None

    def is_expired(self, now_ms: int) -> bool:
        """An entry is only returnable while ``expires_at`` is in the future."""
        return self.expires_at <= now_ms

    @property
    def ttl_ms(self) -> int:
        return self.expires_at - self.retrieved_at


class EntryLookup(BaseModel):
    """Result of a single, non-waiting read of one cache file."""

    status: EntryStatus = "absent"
    entry: CacheEntry | None = None

    @property
    def is_hit(self) -> bool:
        return self.status == "valid"
