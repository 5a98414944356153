# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides temp cache directories and stores with short polling delays so
waiting reads finish quickly.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from ttlfilecache.cache.file_store import FileCacheStore
from ttlfilecache.logging.context import clear_context


# === FIXTURES: Cache stores ===


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Cache directory that does not exist yet."""
    return tmp_path / "cache"


@pytest.fixture
def store(cache_dir: Path) -> FileCacheStore:
    """Store polling 4 times, 20ms apart (80ms max wait per read)."""
    return FileCacheStore(cache_dir, max_retries=4, retry_delay_ms=20, verbose=True)


@pytest.fixture
def no_wait_store(cache_dir: Path) -> FileCacheStore:
    """Store that reports misses without polling."""
    return FileCacheStore(cache_dir, max_retries=0, retry_delay_ms=0)


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()
