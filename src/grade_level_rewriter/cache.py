from __future__ import annotations

import hashlib
import logging
import time
from typing import Callable, Dict

from .models import CacheEntry, RewriteResult

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def make_cache_key(text: str, target_level: str) -> str:
    """Deterministic key for a (text, target level) pair."""
    digest = hashlib.sha256()
    digest.update(target_level.encode("utf-8"))
    digest.update(b"\x00")
    digest.update(text.encode("utf-8"))
    return f"{target_level}:{digest.hexdigest()}"


class AdaptiveCache:
    """Bounded, time-expiring store of rewrite results with LRU eviction."""

    def __init__(
        self,
        capacity: int = 50,
        ttl_seconds: float = 30 * 60,
        clock: Clock = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("Cache capacity must be at least 1.")
        self._capacity = capacity
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get_entry(key) is not None

    def get_entry(self, key: str) -> CacheEntry | None:
        """Return the live entry for ``key`` without touching its access stats."""
        entry = self._entries.get(key)
        if entry is None or self._is_expired(entry, self._clock()):
            return None
        return entry

    def get(self, key: str) -> RewriteResult | None:
        now = self._clock()
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, now):
            # Stays in place until the next cleanup pass.
            logger.debug("Cache entry %s expired (age %.1fs)", key, now - entry.created_at)
            return None
        entry.access_count += 1
        entry.last_accessed_at = now
        return entry.result

    def put(self, key: str, result: RewriteResult) -> None:
        now = self._clock()
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            key=key,
            result=result,
            created_at=now,
            access_count=1,
            last_accessed_at=now,
        )
        self.cleanup()

    def cleanup(self) -> None:
        """Drop expired entries, then evict least-recently-used ones over capacity."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        overflow = len(self._entries) - self._capacity
        evicted: list[str] = []
        if overflow > 0:
            by_recency = sorted(
                self._entries.values(), key=lambda entry: entry.last_accessed_at
            )
            for entry in by_recency[:overflow]:
                del self._entries[entry.key]
                evicted.append(entry.key)
        if expired or evicted:
            logger.debug(
                "Cache cleanup removed %d expired and %d LRU entries (size=%d)",
                len(expired),
                len(evicted),
                len(self._entries),
            )

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> dict[str, float | int]:
        now = self._clock()
        live = [entry for entry in self._entries.values() if not self._is_expired(entry, now)]
        return {
            "size": len(self._entries),
            "live_entries": len(live),
            "capacity": self._capacity,
            "ttl_seconds": self._ttl,
            "total_accesses": sum(entry.access_count for entry in live),
            "oldest_age_seconds": max((now - entry.created_at for entry in live), default=0.0),
        }

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at >= self._ttl
