"""In-memory TTL cache with an injectable clock."""

import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """
    Key/value cache whose entries expire after a fixed time-to-live.
    
    A ttl of zero or less disables caching entirely. The clock is injectable
    so expiry can be driven from tests.
    """
    
    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
    
    @property
    def enabled(self) -> bool:
        return self.ttl > 0
    
    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        
        return value
    
    def set(self, key: str, value: Any):
        if not self.enabled:
            return
        self._entries[key] = (self._clock() + self.ttl, value)
    
    def invalidate(self, *keys: str):
        """Drop the given keys, or everything when no key is given."""
        if not keys:
            self._entries.clear()
            return
        for key in keys:
            self._entries.pop(key, None)
