# src/__init__.py — v1
"""ttlfilecache: filesystem-backed key/value cache with lazy TTL expiration."""

from __future__ import annotations

from ttlfilecache.version import __version__

__all__: tuple[str, ...] = ("__version__",)
