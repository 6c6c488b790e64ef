"""
Response Cache Module - Caching layer for fetched feed text

Provides a thread-safe, TTL-bound cache that is injected into the fetch
client instead of living at module level:
- Entries expire after ttl_seconds
- Entries can be invalidated per URL or cleared entirely
"""
import threading
import time
from typing import Callable, Dict, Optional, Tuple


class ResponseCache:
    """Thread-safe TTL cache for response bodies keyed by URL"""

    def __init__(self, ttl_seconds: float = 300, clock: Callable[[], float] = time.monotonic):
        """
        Initialize cache with TTL (time-to-live)

        Args:
            ttl_seconds: Cache entry lifetime in seconds (default: 5 minutes)
            clock: Time source, injectable for tests
        """
        self.ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}  # {url: (body, stored_at)}
        self._lock = threading.Lock()

    def get(self, url: str) -> Optional[str]:
        """Get cached body or None if expired/missing"""
        with self._lock:
            if url in self._entries:
                body, stored_at = self._entries[url]
                if (self._clock() - stored_at) < self.ttl:
                    return body
                else:
                    del self._entries[url]
        return None

    def set(self, url: str, body: str) -> None:
        """Cache a response body"""
        if self.ttl <= 0:
            return
        with self._lock:
            self._entries[url] = (body, self._clock())

    def invalidate(self, url: str) -> None:
        """Drop a single entry (e.g. on user-triggered refresh)"""
        with self._lock:
            self._entries.pop(url, None)

    def clear(self) -> None:
        """Clear all entries"""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
