"""Process-local, capacity-bounded image cache."""

import logging
import threading
from collections import OrderedDict
from typing import Optional, Tuple

from weather_images.config import MEMORY_CACHE_MAX_ENTRIES

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str]


class MemoryTier:
    """Insertion-ordered cache of encoded images keyed by (fingerprint, format).

    When full, the oldest inserted entry is evicted. Reads do not refresh an
    entry's position, so eviction is first-in first-out.
    """

    def __init__(self, capacity: int = MEMORY_CACHE_MAX_ENTRIES):
        if capacity < 1:
            raise ValueError("Memory cache capacity must be at least 1")
        self.capacity = capacity
        self._entries: "OrderedDict[CacheKey, bytes]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, fingerprint: str, fmt: str) -> Optional[bytes]:
        with self._lock:
            return self._entries.get((fingerprint, fmt))

    def put(self, fingerprint: str, fmt: str, data: bytes) -> Optional[CacheKey]:
        """Store an entry, returning the evicted key if one was dropped."""
        key = (fingerprint, fmt)
        evicted = None
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.capacity:
                evicted, _ = self._entries.popitem(last=False)
            self._entries[key] = bytes(data)
            size = len(self._entries)
        logger.debug(f"Memory cache set {fingerprint[:16]}...:{fmt} (size: {size}/{self.capacity})")
        return evicted

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
