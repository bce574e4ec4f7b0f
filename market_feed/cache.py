import time
from typing import Any, Awaitable, Callable, Dict, Optional

from .logger import feed_logger
from .models import CacheEntry

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class MemoCache:
    """
    Process-lifetime key -> value store with a per-entry expiry.

    There is no locking: two concurrent misses on the same key both run their
    producer and the last one to finish wins. There is no size bound either;
    an entry is only ever replaced by a fresher one.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or now_ms
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Returns the raw entry for `key`, fresh or stale, without side effects."""
        return self._entries.get(key)

    async def get_or_fetch(self, key: str, ttl_ms: int, producer: Callable[[], Awaitable[Any]]) -> Any:
        now = self._clock()
        cached = self._entries.get(key)
        if cached is not None and cached.expires_at > now:
            feed_logger.info(f"Cache hit for {key}")
            return cached.value

        feed_logger.info(f"Cache miss for {key}, fetching")
        value = await producer()
        self._entries[key] = CacheEntry(value=value, expires_at=now + ttl_ms)
        return value

    def clear(self):
        """Drops every entry."""
        self._entries.clear()
