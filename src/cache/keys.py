# src/cache/keys.py — v1
"""Deterministic mapping from logical cache keys to entry files."""

from __future__ import annotations

import hashlib
from pathlib import Path

ENTRY_SUFFIX = ".cjson"


def key_digest(key: str) -> str:
    """MD5 hex digest of the UTF-8 key (addressing only, not security)."""
    return hashlib.md5(key.encode("utf-8")).hexdigest()  # noqa: S324


def cache_file_path(base_directory: Path, key: str) -> Path:
    """Return the entry file path for ``key`` under ``base_directory``.

    Pure function: never touches the filesystem.
    """
    return Path(base_directory) / f"{key_digest(key)}{ENTRY_SUFFIX}"
