# src/cache/retry.py — v1
"""Bounded polling budget for reads waiting on a concurrent writer.

A read that finds no usable entry polls again after a fixed delay, up to
``max_retries`` times, giving another task or process the chance to fill
the key. Counters are per cache file path and belong to one store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class RetryPolicy:
    """Polling budget for a single read."""

    max_retries: int = 4
    delay_ms: int = 250

    @property
    def delay_s(self) -> float:
        return self.delay_ms / 1000

    @property
    def max_wait_s(self) -> float:
        """Upper bound on how long one read keeps polling."""
        return self.max_retries * self.delay_s


@dataclass
class RetryTracker:
    """Consecutive miss counters keyed by cache file path."""

    policy: RetryPolicy = field(default_factory=RetryPolicy)
    _misses: dict[Path, int] = field(default_factory=dict, repr=False)

    def attempts(self, path: Path) -> int:
        return self._misses.get(path, 0)

    def should_wait(self, path: Path) -> bool:
        """Record a miss and decide whether to poll again.

        Once the budget is used up the counter drops back to 1 and the
        caller gives up, so the next independent read gets a fresh wait.
        """
        misses = self._misses.get(path, 0)
        if misses < self.policy.max_retries:
            self._misses[path] = misses + 1
            return True
        self._misses[path] = 1
        return False

    def resolve(self, path: Path) -> None:
        """Forget the counter once the path produced a value."""
        self._misses.pop(path, None)

    def clear(self) -> None:
        self._misses.clear()

    def __len__(self) -> int:
        return len(self._misses)
