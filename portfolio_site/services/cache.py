"""In-process key/value cache with per-entry expiry.

Values are stored as JSON strings so that cached payloads behave the same way
a remote KV namespace would: callers always get a fresh copy back.
"""

import hashlib
import json
import time
from typing import Any, Callable, Dict, Optional, Tuple


LAYOUT_KEY_PREFIX = "layout:"


def hash_string(value: str) -> str:
    """Short stable hash used inside cache keys."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:12]


class KVCache:
    """Key/value store with TTLs measured in seconds."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._store: Dict[str, Tuple[str, Optional[float]]] = {}
        self.clock = clock

    def get(self, key: str) -> Optional[str]:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self.clock():
            self._store.pop(key, None)
            return None
        return value

    def get_json(self, key: str) -> Optional[Any]:
        raw = self.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Store a value.

        Args:
            key: Cache key
            value: A string, or any JSON-serializable object
            ttl: Lifetime in seconds (None keeps the entry until deleted)
        """
        raw = value if isinstance(value, str) else json.dumps(value)
        expires_at = self.clock() + ttl if ttl else None
        self._store[key] = (raw, expires_at)

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
