"""Process-wide TTL cache with explicit keys and an injectable clock."""

import logging
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class TTLCache:
    """Key/value cache whose entries expire ``ttl_seconds`` after being stored."""

    def __init__(
        self,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize cache.

        Args:
            ttl_seconds: Entry time-to-live in seconds
            clock: Time source; tests pass a controllable one
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}

    @staticmethod
    def make_key(*parts: object) -> str:
        """Build a key from its parts, e.g. ``make_key("pool", 1, "0xabc")``."""
        return ":".join(str(p).lower() for p in parts)

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Any | None:
        """Value stored under ``key``, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self.now() - stored_at < self.ttl_seconds:
            logger.debug(f"Cache hit: {key}")
            return value
        del self._entries[key]
        return None

    def put(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, dropping every entry that has expired."""
        now = self.now()
        self.purge_expired(now)
        self._entries[key] = (value, now)

    def purge_expired(self, now: float | None = None) -> int:
        """Remove expired entries; returns how many were dropped."""
        if now is None:
            now = self.now()
        expired = [k for k, (_, stored_at) in self._entries.items() if now - stored_at >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
