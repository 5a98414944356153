# src/logging/context.py — v3
"""Contextual logging support: attach store, operation and key to records.

Each asyncio task runs in a copy of the current context, so concurrent
batch members keep their own key.
"""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

_store: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "store", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_cache_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cache_key", default=None
)


@dataclass(frozen=True)
class LogContext:
    """Immutable snapshot of current logging context."""

    store: str | None = None
    operation: str | None = None
    cache_key: str | None = None


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        store=_store.get(),
        operation=_operation.get(),
        cache_key=_cache_key.get(),
    )


@contextmanager
def cache_operation(
    operation: str, key: str | None = None, store: str | None = None
) -> Iterator[None]:
    """Tag log records emitted inside the block, restoring the outer values on exit."""
    tokens = [_operation.set(operation), _cache_key.set(key)]
    if store is not None:
        tokens.append(_store.set(store))
    try:
        yield
    finally:
        for token in reversed(tokens):
            token.var.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _store.set(None)
    _operation.set(None)
    _cache_key.set(None)
