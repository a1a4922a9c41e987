"""
In-process TTL cache for read-heavy user lookups.

Usage:
    cache = ResultCache(ttl_seconds=300)
    value = cache.get("user:1")           # returns the value or MISS
    cache.set("user:1", projection)
    cache.invalidate("all_users")         # after any write to users

Expired entries are treated as absent and removed lazily on the next read.
An entry stored exactly TTL seconds ago is already expired.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 5 * 60

USER_KEY_PREFIX = "user:"
ALL_USERS_KEY = "all_users"


def user_key(user_id: int) -> str:
    return f"{USER_KEY_PREFIX}{user_id}"


class _Miss:
    """Sentinel for cache misses (None can be a cached value)."""

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS = _Miss()


@dataclass
class CacheEntry:
    value: Any
    stored_at: float


class ResultCache:
    """
    Lock-guarded TTL map shared by all requests in the process.

    While a get_or_load() is in flight for a key, invalidate() and clear() bump that
    key's generation, and the loaded value is only stored if the generation did not
    move. Generations are kept only for keys with a load in flight.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._generations: dict[str, int] = {}
        self._loading: dict[str, int] = {}
        self._lock = threading.Lock()

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at >= self.ttl

    def _bump(self, key: str) -> None:
        if key in self._loading:
            self._generations[key] = self._generations.get(key, 0) + 1

    def _finish_load(self, key: str) -> None:
        remaining = self._loading[key] - 1
        if remaining:
            self._loading[key] = remaining
        else:
            del self._loading[key]
            self._generations.pop(key, None)

    def get(self, key: str) -> Any:
        """Return the cached value for key, or MISS if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return MISS
            if self._is_expired(entry, self._clock()):
                del self._entries[key]
                return MISS
            return entry.value

    def set(self, key: str, value: Any) -> None:
        """Store value for key, replacing any existing entry and resetting its age."""
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def invalidate(self, key: str) -> None:
        """Remove key if present. No-op otherwise."""
        with self._lock:
            self._entries.pop(key, None)
            self._bump(key)

    def get_or_load(self, key: str, loader: Callable[[], T]) -> T:
        """Cache-through read: return the cached value or call loader() and cache its result."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if not self._is_expired(entry, self._clock()):
                    return entry.value
                del self._entries[key]
            generation = self._generations.get(key, 0)
            self._loading[key] = self._loading.get(key, 0) + 1

        try:
            value = loader()
        except BaseException:
            with self._lock:
                self._finish_load(key)
            raise

        with self._lock:
            if self._generations.get(key, 0) == generation:
                self._entries[key] = CacheEntry(value=value, stored_at=self._clock())
            self._finish_load(key)
        return value

    def purge_expired(self) -> int:
        """Delete all expired entries. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            for key in self._loading:
                self._bump(key)
            self._entries.clear()

    def tracked_keys(self) -> int:
        """Number of keys holding an entry or a load generation."""
        with self._lock:
            return len(set(self._entries) | set(self._generations) | set(self._loading))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
