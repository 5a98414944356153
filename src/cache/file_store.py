# src/cache/file_store.py — v2
"""File-based cache store (one entry file per key).

Entries live under a single base directory, named after the MD5 digest of
their key. Expiration is lazy: expired files stay on disk until they are
overwritten, deleted or flushed.

A read that finds nothing usable (missing, expired or unreadable file) does
not report a miss straight away. It polls the file again every
``retry_delay_ms`` for up to ``max_retries`` rounds, so a caller asking for
a key that another task or process is busy computing picks up the value
once it lands instead of recomputing it.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from ttlfilecache.cache.base_cache_store import BaseCacheStore
from ttlfilecache.cache.entry_codec import decode_entry, encode_entry, now_ms
from ttlfilecache.cache.errors import (
    CacheBatchError,
    CacheError,
    CacheIOError,
    UnsupportedConfigurationError,
)
from ttlfilecache.cache.keys import cache_file_path
from ttlfilecache.cache.models import EntryLookup
from ttlfilecache.cache.retry import RetryPolicy, RetryTracker
from ttlfilecache.logging.context import cache_operation

logger = logging.getLogger(__name__)

DEFAULT_EXPIRATION_S = 900


class FileCacheStore(BaseCacheStore):
    """TTL cache store persisting each entry as a JSON file."""

    def __init__(
        self,
        base_directory: Path | str,
        *,
        default_expiration_s: float = DEFAULT_EXPIRATION_S,
        max_retries: int = 4,
        retry_delay_ms: int = 250,
        verbose: bool = False,
    ) -> None:
        self._root = Path(base_directory).expanduser()
        self._default_expiration_s = default_expiration_s
        self._retries = RetryTracker(RetryPolicy(max_retries, retry_delay_ms))
        self._verbose = verbose

    @property
    def base_directory(self) -> Path:
        return self._root

    @property
    def default_expiration_s(self) -> float:
        return self._default_expiration_s

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retries.policy

    def path_for(self, key: str) -> Path:
        """Return the entry file path for a cache key."""
        return cache_file_path(self._root, key)

    # --- Reads ---

    async def get(self, key: str) -> Any | None:
        """Retrieve a value, polling for a concurrent writer before giving up."""
        path = self.path_for(key)
        policy = self._retries.policy
        with cache_operation("get", key, str(self._root)):
            while True:
                lookup = await self._read(key, path)
                if lookup.is_hit:
                    self._retries.resolve(path)
                    return lookup.entry.value  # type: ignore[union-attr]
                if lookup.status == "expired":
                    self._log("Key %s expired", key)

                if not self._retries.should_wait(path):
                    self._log("No value for key %s after %d retries", key, policy.max_retries)
                    return None
                self._log(
                    "Waiting %dms for key %s (attempt %d/%d)",
                    policy.delay_ms, key, self._retries.attempts(path), policy.max_retries,
                )
                await asyncio.sleep(policy.delay_s)

    async def mget(self, keys: str | Iterable[str]) -> dict[str, Any]:
        """Resolve keys concurrently; keys without a value are left out.

        Raises:
            CacheBatchError: If any key hit an I/O error. ``results`` holds
                the keys that did resolve.
        """
        key_list = _as_key_list(keys)
        outcomes = await asyncio.gather(
            *(self.get(key) for key in key_list), return_exceptions=True
        )
        resolved, errors = _collect("mget", key_list, outcomes)
        results = {key: value for key, value in resolved if value is not None}
        if errors:
            raise CacheBatchError("mget", errors, count=len(results), results=results)
        return results

    async def lookup(self, key: str) -> EntryLookup:
        """Read a key once and report its status without polling."""
        with cache_operation("lookup", key, str(self._root)):
            return await self._read(key, self.path_for(key))

    async def _read(self, key: str, path: Path) -> EntryLookup:
        raw = await asyncio.to_thread(self._load, key, path)
        if raw is None:
            return EntryLookup(status="absent")

        entry = decode_entry(raw)
        if entry is None:
            self._log("Cache for key %s could not be parsed", key)
            return EntryLookup(status="corrupt")
        if entry.is_expired(now_ms()):
            return EntryLookup(status="expired", entry=entry)
        return EntryLookup(status="valid", entry=entry)

    def _load(self, key: str, path: Path) -> bytes | None:
        """Return the raw entry bytes, or None when there is no file."""
        try:
            if not path.exists():
                self._log("No cache for key %s found", key)
                return None
            self._log("Trying to load key %s: %s", key, path)
            return path.read_bytes()
        except FileNotFoundError:
            self._log("Cache file for key %s vanished before it was read", key)
            return None
        except OSError as e:
            raise CacheIOError(path, "read", e, key=key) from e

    # --- Writes ---

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: float | None = None,
        *,
        refresh: bool = False,
    ) -> None:
        """Store a value, replacing any previous entry for the key.

        Raises:
            UnsupportedConfigurationError: If ``refresh`` is requested.
            SerializationError: If the value cannot be encoded.
            CacheIOError: If the file cannot be written.
        """
        _reject_refresh(refresh)
        with cache_operation("set", key, str(self._root)):
            path, payload = self._prepare_write(key, value, ttl_seconds)
            await asyncio.to_thread(self._write, key, path, payload)

    def set_sync(
        self,
        key: str,
        value: Any,
        ttl_seconds: float | None = None,
        *,
        refresh: bool = False,
    ) -> None:
        """Blocking variant of :meth:`set`."""
        _reject_refresh(refresh)
        with cache_operation("set", key, str(self._root)):
            path, payload = self._prepare_write(key, value, ttl_seconds)
            self._write(key, path, payload)

    async def mset(
        self, mapping: Mapping[str, Any], ttl_seconds: float | None = None
    ) -> int:
        """Store every item independently; no rollback on partial failure."""
        keys = list(mapping)
        outcomes = await asyncio.gather(
            *(self.set(key, mapping[key], ttl_seconds) for key in keys),
            return_exceptions=True,
        )
        written, errors = _collect("mset", keys, outcomes)
        if errors:
            raise CacheBatchError("mset", errors, count=len(written))
        return len(written)

    def mset_sync(
        self, mapping: Mapping[str, Any], ttl_seconds: float | None = None
    ) -> int:
        """Blocking variant of :meth:`mset`."""
        keys = list(mapping)
        outcomes: list[Any] = []
        for key in keys:
            try:
                outcomes.append(self.set_sync(key, mapping[key], ttl_seconds))
            except CacheError as e:
                outcomes.append(e)
        written, errors = _collect("mset", keys, outcomes)
        if errors:
            raise CacheBatchError("mset", errors, count=len(written))
        return len(written)

    def _prepare_write(
        self, key: str, value: Any, ttl_seconds: float | None
    ) -> tuple[Path, bytes]:
        ttl = self._default_expiration_s if ttl_seconds is None else ttl_seconds
        path = self.path_for(key)
        payload = encode_entry(key, ttl, value, now_ms())
        self._log("Saving key %s in %s (expiration: %ss)", key, path, ttl)
        return path, payload

    @staticmethod
    def _write(key: str, path: Path, payload: bytes) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(payload)
        except OSError as e:
            raise CacheIOError(path, "write", e, key=key) from e

    # --- Maintenance ---

    async def delete(self, keys: str | Iterable[str]) -> int:
        """Remove entries concurrently; missing entries are not errors.

        Raises:
            CacheBatchError: If some files could not be removed. The other
                deletions still happen and ``count`` reports them.
        """
        key_list = _as_key_list(keys)
        outcomes = await asyncio.gather(
            *(self._delete_async(key) for key in key_list), return_exceptions=True
        )
        return self._count_removed(key_list, outcomes)

    def delete_sync(self, keys: str | Iterable[str]) -> int:
        """Blocking variant of :meth:`delete`."""
        key_list = _as_key_list(keys)
        outcomes: list[Any] = []
        for key in key_list:
            with cache_operation("delete", key, str(self._root)):
                try:
                    outcomes.append(self._remove(key))
                except CacheError as e:
                    outcomes.append(e)
        return self._count_removed(key_list, outcomes)

    async def _delete_async(self, key: str) -> bool:
        with cache_operation("delete", key, str(self._root)):
            return await asyncio.to_thread(self._remove, key)

    def _remove(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            if not path.exists():
                return False
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheIOError(path, "delete", e, key=key) from e
        self._log("Deleted key %s", key)
        return True

    @staticmethod
    def _count_removed(keys: Sequence[str], outcomes: Sequence[Any]) -> int:
        removed, errors = _collect("delete", keys, outcomes)
        count = sum(1 for _, was_removed in removed if was_removed)
        if errors:
            raise CacheBatchError("delete", errors, count=count)
        return count

    async def flush(self) -> None:
        """Remove every entry. The removal itself is synchronous."""
        self.flush_sync()

    def flush_sync(self) -> None:
        """Forget all retry counters and delete the base directory."""
        with cache_operation("flush", store=str(self._root)):
            self._log("Flushing everything in %s", self._root)
            self._retries.clear()
            try:
                shutil.rmtree(self._root)
            except FileNotFoundError:
                return
            except OSError as e:
                raise CacheIOError(self._root, "flush", e) from e

    def _log(self, message: str, *args: Any) -> None:
        logger.log(logging.INFO if self._verbose else logging.DEBUG, message, *args)


def _as_key_list(keys: str | Iterable[str]) -> list[str]:
    """Normalize one key or many into a de-duplicated, ordered list."""
    if isinstance(keys, str):
        return [keys]
    return list(dict.fromkeys(keys))


def _reject_refresh(refresh: bool) -> None:
    if refresh:
        raise UnsupportedConfigurationError("Refresh is not supported by this store")


def _collect(
    operation: str, keys: Sequence[str], outcomes: Sequence[Any]
) -> tuple[list[tuple[str, Any]], dict[str, Exception]]:
    """Split per-key batch outcomes into successes and cache errors.

    Exceptions that are not cache errors are re-raised unchanged.
    """
    done: list[tuple[str, Any]] = []
    errors: dict[str, Exception] = {}
    for key, outcome in zip(keys, outcomes):
        if isinstance(outcome, CacheError):
            logger.error("Cache %s failed for key %s: %s", operation, key, outcome)
            errors[key] = outcome
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            done.append((key, outcome))
    return done, errors
