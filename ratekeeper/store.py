"""In-memory key-value store with per-entry TTL and an LRU capacity bound."""
import time
from collections import OrderedDict
from typing import Any, Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class ExpiringStore:
    """Bounded mapping whose entries expire ``ttl_ms`` after their last write.

    Expired entries read as absent even before they are purged. When full, the
    least recently used entry is dropped to make room; that eviction is silent.
    Not thread-safe: the owning limiter serialises access.
    """

    def __init__(self, max_size: int, ttl_ms: int, clock: Clock | None = None) -> None:
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        if ttl_ms <= 0:
            raise ValueError(f"ttl_ms must be positive, got {ttl_ms}")
        self.max_size = max_size
        self.ttl_ms = ttl_ms
        self._clock = clock or now_ms
        # key -> (value, expires_at_ms); front of the dict is least recently used
        self._data: OrderedDict[str, tuple[Any, int]] = OrderedDict()

    def get(self, key: str) -> Any | None:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if self._clock() >= expires_at:
            del self._data[key]
            return None
        self._data.move_to_end(key)
        return value

    def set(self, key: str, value: Any, ttl_ms: int | None = None) -> None:
        ttl = self.ttl_ms if ttl_ms is None else ttl_ms
        if key in self._data:
            self._data.move_to_end(key)
        else:
            while len(self._data) >= self.max_size:
                self._data.popitem(last=False)
        self._data[key] = (value, self._clock() + ttl)

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        stale = [k for k, (_, expires_at) in self._data.items() if now >= expires_at]
        for k in stale:
            del self._data[k]
        return len(stale)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        item = self._data.get(key)  # type: ignore[call-overload]
        return item is not None and self._clock() < item[1]

    def __len__(self) -> int:
        return len(self._data)
