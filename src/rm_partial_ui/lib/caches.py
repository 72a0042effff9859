"""
Disk-backed key/value storage for small session records.

DiskCache keeps values on disk with an optional time-to-live, so a login
survives application reloads and server restarts. Keys are namespaced so
several stores can share one directory. Built on the diskcache library,
which is thread-safe and process-safe.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import diskcache


@dataclass
class CacheEntry:
    """
    A stored value and its expiry.

    Attributes:
        value: The stored value.
        expires_at: Epoch seconds when the entry expires, or None.
    """

    value: Any
    expires_at: float | None = None

    @property
    def ttl(self) -> float | None:
        """Seconds left before expiry, or None for entries that never expire."""
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.time())


class DiskCache:
    """
    Namespaced disk cache with TTL support.

    Attributes:
        cache_dir: Directory holding the cache files.
        namespace: Prefix applied to every key.
    """

    def __init__(self, cache_dir: str | Path, namespace: str = "rm_partial_ui") -> None:
        self.cache_dir = Path(cache_dir)
        self.namespace = namespace
        self._cache = diskcache.Cache(str(self.cache_dir))

    def get(self, key: str) -> CacheEntry | None:
        """
        Return the entry stored under key.

        Returns:
            CacheEntry if present and not expired, None otherwise.
        """
        value, expires_at = self._cache.get(
            self._key(key), default=None, expire_time=True
        )
        if value is None:
            return None
        return CacheEntry(value=value, expires_at=expires_at)

    def set(self, key: str, value: Any, expire: int | None = None) -> None:
        """
        Store a value.

        Args:
            key: Key within the namespace.
            value: Picklable value.
            expire: TTL in seconds. None means no expiration.
        """
        self._cache.set(self._key(key), value, expire=expire)

    def touch(self, key: str, expire: int | None = None) -> bool:
        """Reset the TTL of an existing entry; False when the key is absent."""
        return self._cache.touch(self._key(key), expire=expire)

    def delete(self, key: str) -> None:
        self._cache.delete(self._key(key))

    def close(self) -> None:
        """Close the cache and release file handles."""
        self._cache.close()

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"
