# tests/unit/cache/test_base_cache_store.py — v2
"""Tests for cache/base_cache_store.py — BaseCacheStore ABC."""

from __future__ import annotations

from typing import Any

import pytest

from ttlfilecache.cache.base_cache_store import BaseCacheStore
from ttlfilecache.cache.models import EntryLookup


class _DictStore(BaseCacheStore):
    """In-memory store used to exercise the shared helpers."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.sets = 0

    async def get(self, key):
        return self.data.get(key)

    async def mget(self, keys):
        return {k: self.data[k] for k in keys if k in self.data}

    async def set(self, key, value, ttl_seconds=None, *, refresh=False):
        self.sets += 1
        self.data[key] = value

    async def mset(self, mapping, ttl_seconds=None):
        self.data.update(mapping)
        return len(mapping)

    async def delete(self, keys):
        return 0

    async def flush(self):
        self.data.clear()

    async def lookup(self, key):
        return EntryLookup()


class TestBaseCacheStore:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseCacheStore()  # type: ignore[abstract]

    def test_has_required_methods(self):
        for method in ["get", "mget", "set", "mset", "delete", "flush", "lookup", "get_or_set"]:
            assert hasattr(BaseCacheStore, method)


class TestGetOrSet:
    @pytest.mark.asyncio
    async def test_miss_calls_factory_and_stores(self):
        store = _DictStore()
        value = await store.get_or_set("k", lambda: "computed")
        assert value == "computed"
        assert store.data["k"] == "computed"

    @pytest.mark.asyncio
    async def test_hit_skips_factory(self):
        store = _DictStore()
        store.data["k"] = "cached"

        def factory():
            raise AssertionError("factory must not run on a hit")

        assert await store.get_or_set("k", factory) == "cached"
        assert store.sets == 0

    @pytest.mark.asyncio
    async def test_async_factory(self):
        store = _DictStore()

        async def factory():
            return [1, 2, 3]

        assert await store.get_or_set("k", factory) == [1, 2, 3]
        assert store.data["k"] == [1, 2, 3]
