"""
portfolio_core/quote_cache.py
-----------------------------
Explicit, injectable TTL cache for the market-data layer.

Problem
-------
Quote / fundamentals fetches are slow and rate-limited, and the same
symbol is typically valued several times within a few minutes.  A module-
level dict shared by every caller makes that hard to test and impossible
to scope per request or per user.

Design
------
* One ``QuoteCache`` instance is created by whoever owns the fetch
  functions and passed to them explicitly.  None of the engines import it:
  they only ever see the plain values the caller pulls out of the cache.
* ``get`` / ``set`` / ``is_valid`` / ``invalidate`` mirror the disk metric
  cache API; ``get_or_fetch`` is the usual entry point.
* Expiry uses an injected ``clock`` (default ``time.monotonic``) so tests can
  advance time without sleeping.  Expired entries are evicted on access.

Usage
-----
::

    cache = QuoteCache(ttl_seconds=60)
    fundamentals = cache.get_or_fetch(f"fundamentals:{symbol}",
                                      lambda: provider.fundamentals(symbol))
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from portfolio_core.config import DEFAULT_CACHE_TTL_SECONDS
from portfolio_core.errors import InvalidInputError

logger = logging.getLogger(__name__)


class QuoteCache:
    """In-memory key → value cache with a per-entry time-to-live."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise InvalidInputError("ttl_seconds must be positive.")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def get(self, key: Hashable) -> Optional[Any]:
        """Cached value for *key*, or ``None`` if missing or expired."""
        if not self.is_valid(key):
            return None
        return self._entries[key][0]

    def set(self, key: Hashable, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Store *value*; *ttl_seconds* overrides the cache default for this entry."""
        ttl = self._ttl if ttl_seconds is None else ttl_seconds
        self._entries[key] = (value, self._clock() + ttl)

    def is_valid(self, key: Hashable) -> bool:
        """True when *key* holds an unexpired entry.  Evicts it otherwise."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        if self._clock() >= entry[1]:
            del self._entries[key]
            logger.debug("cache expired: %s", key)
            return False
        return True

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop one entry, or everything when *key* is ``None``."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def get_or_fetch(self, key: Hashable, fetch: Callable[[], Any]) -> Any:
        """
        Return the cached value, otherwise call *fetch*, store and return it.

        Exceptions from *fetch* propagate and nothing is cached.
        """
        if self.is_valid(key):
            logger.debug("cache hit: %s", key)
            return self._entries[key][0]

        logger.debug("cache miss: %s", key)
        value = fetch()
        self.set(key, value)
        return value

    def __len__(self) -> int:
        return len(self._entries)
