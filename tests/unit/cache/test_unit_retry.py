# tests/unit/cache/test_unit_retry.py — v1
"""Tests for cache/retry.py — polling budget and per-path counters."""

from __future__ import annotations

from pathlib import Path

import pytest

from ttlfilecache.cache.retry import RetryPolicy, RetryTracker


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == 4
        assert policy.delay_ms == 250

    def test_delay_seconds(self):
        assert RetryPolicy(delay_ms=250).delay_s == pytest.approx(0.25)

    def test_max_wait(self):
        assert RetryPolicy(max_retries=4, delay_ms=250).max_wait_s == pytest.approx(1.0)


class TestRetryTracker:
    def test_waits_until_budget_exhausted(self):
        tracker = RetryTracker(RetryPolicy(max_retries=3, delay_ms=0))
        path = Path("a.cjson")
        assert [tracker.should_wait(path) for _ in range(4)] == [True, True, True, False]

    def test_exhausted_budget_resets_to_one(self):
        tracker = RetryTracker(RetryPolicy(max_retries=3, delay_ms=0))
        path = Path("a.cjson")
        for _ in range(4):
            tracker.should_wait(path)
        assert tracker.attempts(path) == 1
        # Next independent read gets a bounded wait again
        assert tracker.should_wait(path) is True

    def test_zero_retries_never_waits(self):
        tracker = RetryTracker(RetryPolicy(max_retries=0, delay_ms=0))
        assert tracker.should_wait(Path("a.cjson")) is False

    def test_paths_are_independent(self):
        tracker = RetryTracker(RetryPolicy(max_retries=1, delay_ms=0))
        assert tracker.should_wait(Path("a.cjson")) is True
        assert tracker.should_wait(Path("b.cjson")) is True
        assert tracker.should_wait(Path("a.cjson")) is False

    def test_resolve_forgets_path(self):
        tracker = RetryTracker()
        path = Path("a.cjson")
        tracker.should_wait(path)
        tracker.resolve(path)
        assert tracker.attempts(path) == 0
        assert len(tracker) == 0

    def test_resolve_unknown_path(self):
        RetryTracker().resolve(Path("never-seen.cjson"))

    def test_clear(self):
        tracker = RetryTracker()
        tracker.should_wait(Path("a.cjson"))
        tracker.should_wait(Path("b.cjson"))
        tracker.clear()
        assert len(tracker) == 0
