# src/cache/entry_codec.py — v2
"""Encode and decode the on-disk cache entry record.

The record is UTF-8 JSON holding the CacheEntry fields, with ``value``
passed through the graph codec so cyclic values survive the round trip.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from pydantic import ValidationError

from ttlfilecache.cache.graph_codec import GraphDecodeError, decode_graph, encode_graph
from ttlfilecache.cache.models import CacheEntry

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def encode_entry(key: str, ttl_seconds: float, value: Any, now: int) -> bytes:
    """Build and serialize the entry for ``value``.

    Raises:
        SerializationError: If ``value`` cannot be represented.
    """
    entry = CacheEntry(
        key=key,
        retrieved_at=now,
        expires_at=now + int(ttl_seconds * 1000),
        value=encode_graph(value),
    )
    return json.dumps(entry.model_dump(), ensure_ascii=False).encode("utf-8")


def decode_entry(raw: bytes) -> CacheEntry | None:
    """Parse a stored entry; corrupt or foreign bytes yield None."""
    try:
        entry = CacheEntry.model_validate(json.loads(raw.decode("utf-8")))
        return entry.model_copy(update={"value": decode_graph(entry.value)})
    except (
        UnicodeDecodeError, json.JSONDecodeError, RecursionError,
        ValidationError, GraphDecodeError,
    ) as e:
        logger.warning("Discarding unreadable cache entry: %s", e)
        return None
