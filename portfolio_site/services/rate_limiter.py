"""Rate limits backed by the key/value cache."""

import math
from typing import NamedTuple
from portfolio_site.services.cache import KVCache


RATE_LIMIT_KEY_PREFIX = "ratelimit:"


class RateLimitResult(NamedTuple):
    limited: bool
    retry_after: int = 0


NOT_LIMITED = RateLimitResult(False, 0)


class WindowRateLimiter:
    """
    Fixed-window counter: at most ``max_requests`` per ``window`` seconds per key.

    Used for layout generation, keyed by client IP.
    """

    def __init__(self, cache: KVCache, max_requests: int = 3, window: int = 60, scope: str = "generate"):
        self.cache = cache
        self.max_requests = max_requests
        self.window = window
        self.scope = scope

    def _key(self, client: str) -> str:
        return f"{RATE_LIMIT_KEY_PREFIX}{self.scope}:{client}"

    def check(self, client: str) -> RateLimitResult:
        entry = self.cache.get_json(self._key(client))
        if not entry:
            return NOT_LIMITED

        elapsed = self.cache.clock() - entry["windowStart"]
        if elapsed >= self.window:
            return NOT_LIMITED

        if entry["count"] >= self.max_requests:
            return RateLimitResult(True, math.ceil(self.window - elapsed))
        return NOT_LIMITED

    def hit(self, client: str) -> None:
        """Count one request for ``client``."""
        key = self._key(client)
        now = self.cache.clock()
        entry = self.cache.get_json(key)

        if entry and now - entry["windowStart"] < self.window:
            entry = {"count": entry["count"] + 1, "windowStart": entry["windowStart"]}
        else:
            entry = {"count": 1, "windowStart": now}

        self.cache.put(key, entry, ttl=self.window * 2)


class CooldownRateLimiter:
    """
    One action per ``window`` seconds per key.

    Used for dislike feedback, keyed by session id.
    """

    def __init__(self, cache: KVCache, window: int = 60):
        self.cache = cache
        self.window = window

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{RATE_LIMIT_KEY_PREFIX}{session_id}"

    def check(self, session_id: str) -> RateLimitResult:
        entry = self.cache.get_json(self._key(session_id))
        if not entry:
            return NOT_LIMITED

        elapsed = self.cache.clock() - entry["lastDislike"]
        if elapsed < self.window:
            return RateLimitResult(True, math.ceil(self.window - elapsed))
        return NOT_LIMITED

    def hit(self, session_id: str) -> None:
        self.cache.put(
            self._key(session_id),
            {"lastDislike": self.cache.clock(), "count": 1},
            ttl=max(self.window * 5, 300),
        )
