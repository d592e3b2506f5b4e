"""
tests/test_quote_cache.py
-------------------------
Unit tests for QuoteCache.

Coverage:
  - get()/set() — hit, miss, per-entry TTL override
  - is_valid() — expiry boundary, eviction on access
  - invalidate() — single key and full clear
  - get_or_fetch() — fetch once, refetch after expiry, errors not cached
"""

import unittest
from unittest.mock import MagicMock

from portfolio_core.errors import InvalidInputError
from portfolio_core.quote_cache import QuoteCache


class _FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# TestGetSet
# ---------------------------------------------------------------------------

class TestGetSet(unittest.TestCase):

    def setUp(self):
        self.clock = _FakeClock()
        self.cache = QuoteCache(ttl_seconds=60, clock=self.clock)

    def test_miss_returns_none(self):
        self.assertIsNone(self.cache.get("quote:AAPL"))

    def test_hit_returns_value(self):
        self.cache.set("quote:AAPL", 189.5)
        self.assertEqual(self.cache.get("quote:AAPL"), 189.5)

    def test_per_entry_ttl_override(self):
        self.cache.set("short", 1, ttl_seconds=5)
        self.cache.set("long", 2)
        self.clock.advance(10)
        self.assertIsNone(self.cache.get("short"))
        self.assertEqual(self.cache.get("long"), 2)

    def test_non_positive_ttl_rejected(self):
        with self.assertRaises(InvalidInputError):
            QuoteCache(ttl_seconds=0)


# ---------------------------------------------------------------------------
# TestExpiry
# ---------------------------------------------------------------------------

class TestExpiry(unittest.TestCase):

    def setUp(self):
        self.clock = _FakeClock()
        self.cache = QuoteCache(ttl_seconds=60, clock=self.clock)
        self.cache.set("k", "v")

    def test_valid_just_before_expiry(self):
        self.clock.advance(59.9)
        self.assertTrue(self.cache.is_valid("k"))

    def test_expired_at_ttl(self):
        self.clock.advance(60)
        self.assertFalse(self.cache.is_valid("k"))

    def test_expired_entry_is_evicted(self):
        self.clock.advance(61)
        self.cache.get("k")
        self.assertEqual(len(self.cache), 0)


# ---------------------------------------------------------------------------
# TestInvalidate
# ---------------------------------------------------------------------------

class TestInvalidate(unittest.TestCase):

    def setUp(self):
        self.cache = QuoteCache(clock=_FakeClock())
        self.cache.set("a", 1)
        self.cache.set("b", 2)

    def test_single_key(self):
        self.cache.invalidate("a")
        self.assertIsNone(self.cache.get("a"))
        self.assertEqual(self.cache.get("b"), 2)

    def test_missing_key_is_noop(self):
        self.cache.invalidate("zzz")
        self.assertEqual(len(self.cache), 2)

    def test_clear_all(self):
        self.cache.invalidate()
        self.assertEqual(len(self.cache), 0)


# ---------------------------------------------------------------------------
# TestGetOrFetch
# ---------------------------------------------------------------------------

class TestGetOrFetch(unittest.TestCase):

    def setUp(self):
        self.clock = _FakeClock()
        self.cache = QuoteCache(ttl_seconds=30, clock=self.clock)

    def test_fetches_once_while_fresh(self):
        fetch = MagicMock(return_value={"eps": 6.1})
        first = self.cache.get_or_fetch("fundamentals:AAPL", fetch)
        second = self.cache.get_or_fetch("fundamentals:AAPL", fetch)
        self.assertEqual(first, second)
        fetch.assert_called_once()

    def test_refetches_after_expiry(self):
        fetch = MagicMock(side_effect=[1, 2])
        self.assertEqual(self.cache.get_or_fetch("k", fetch), 1)
        self.clock.advance(31)
        self.assertEqual(self.cache.get_or_fetch("k", fetch), 2)
        self.assertEqual(fetch.call_count, 2)

    def test_fetch_error_propagates_and_is_not_cached(self):
        fetch = MagicMock(side_effect=RuntimeError("provider down"))
        with self.assertRaises(RuntimeError):
            self.cache.get_or_fetch("k", fetch)
        self.assertFalse(self.cache.is_valid("k"))


if __name__ == "__main__":
    unittest.main()
