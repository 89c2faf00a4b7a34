"""Time-bounded cache for extracted page text, owned by the context resolver."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .constants import CONTENT_CACHE_TTL_SEC


@dataclass
class CacheEntry:
    content: str
    timestamp: float


class ContentCache:
    """URL -> extracted text cache with per-entry expiry."""

    def __init__(self, ttl_seconds: float = CONTENT_CACHE_TTL_SEC, clock: Optional[Callable[[], float]] = None) -> None:
        """Purpose: Create an empty cache with an expiry policy.
        Inputs/Outputs: Inputs are TTL in seconds and an optional clock; no return value.
        Side Effects / State: Holds entries in memory only.
        Dependencies: time.monotonic by default.
        Failure Modes: None.
        If Removed: Every retry attempt refetches the same page.
        Testing Notes: Inject a fake clock to move past the TTL.
        """
        # Entries are timestamped on write and checked against the TTL on read.
        self._ttl = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, url: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(url)
            if entry is None:
                return None
            if self._clock() - entry.timestamp > self._ttl:
                del self._entries[url]
                return None
            return entry.content

    def set(self, url: str, content: str) -> None:
        with self._lock:
            self._entries[url] = CacheEntry(content=content, timestamp=self._clock())

    def prune(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [url for url, entry in self._entries.items() if now - entry.timestamp > self._ttl]
            for url in expired:
                del self._entries[url]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
