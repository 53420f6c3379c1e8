# storefront/core/cache.py
import json
import time
from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class CacheEntry:
    data: Any
    timestamp: float
    expiry: float


class TTLCache:
    """
    Per-process read-through cache for catalog queries.

    - Entries expire `ttl` seconds after being set.
    - Expired entries are evicted lazily, on the next `get` for that key.
    - No size bound and no invalidation on writes.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock

    def set(self, key: str, data: Any, ttl: float = 5 * 60) -> None:
        now = self._clock()
        self._entries[key] = CacheEntry(data=data, timestamp=now, expiry=now + ttl)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expiry:
            del self._entries[key]
            return None
        return entry.data

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def make_cache_key(prefix: str, **params: Any) -> str:
    """
    Build a stable cache key from query parameters.

    Example:
        make_cache_key("products", page=1, search="pen")
        -> 'products_{"page": 1, "search": "pen"}'
    """
    return f"{prefix}_{json.dumps(params, sort_keys=True, default=str)}"


# Shared by every catalog read in this process
catalog_cache = TTLCache()
