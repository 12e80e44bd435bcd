"""
Cache types.
"""

from __future__ import annotations

import fnmatch
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

from hoard._types import RawRecord

# ═══════════════════════════════════════════════════════════════════════════════
# Cache Item
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CacheItem:
    """Result of a pool lookup. payload is None on a miss."""

    key: str
    payload: RawRecord | None
    hit: bool

    @classmethod
    def miss(cls, key: str) -> CacheItem:
        return cls(key=key, payload=None, hit=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Pool Protocol — Users Implement This
# ═══════════════════════════════════════════════════════════════════════════════


class Pool(Protocol):
    """
    Cache pool protocol.

    Pools hold raw records only; hydration stays in the loader.
    Implement this for custom backends (Redis, Memcached, etc.)

    Example:
        class RedisPool:
            def __init__(self, client: Redis, ttl: int | None = None):
                self.client = client
                self.ttl = ttl

            @property
            def name(self) -> str:
                return "redis"

            async def get(self, key: str) -> CacheItem:
                data = await self.client.get(key)
                if data is None:
                    return CacheItem.miss(key)
                return CacheItem(key, json.loads(data), hit=True)

            async def set(self, key: str, payload: RawRecord) -> None:
                await self.client.set(key, json.dumps(dict(payload)), ex=self.ttl)

            async def delete(self, key: str) -> bool:
                return await self.client.delete(key) > 0

            async def delete_pattern(self, pattern: str) -> int:
                keys = await self.client.keys(pattern)
                if keys:
                    return await self.client.delete(*keys)
                return 0
    """

    @property
    def name(self) -> str:
        """Pool name for debugging."""
        ...

    async def get(self, key: str) -> CacheItem:
        """Look up a key."""
        ...

    async def set(self, key: str, payload: RawRecord) -> None:
        """Store a raw record."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete key. Returns True if existed."""
        ...

    async def delete_pattern(self, pattern: str) -> int:
        """Delete keys matching a glob pattern. Returns count."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Pool — In-Memory LRU (Default)
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryPool:
    """
    In-memory LRU pool.

    Records are copied on the way in and out, so callers can't mutate
    what is cached.

    Example:
        pool = MemoryPool(max_size=1000)
    """

    def __init__(self, max_size: int | None = 1000) -> None:
        self._max_size = max_size
        self._items: OrderedDict[str, dict[str, object]] = OrderedDict()

    @property
    def name(self) -> str:
        return "memory"

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    async def get(self, key: str) -> CacheItem:
        if key in self._items:
            # Move to end (most recent)
            self._items.move_to_end(key)
            return CacheItem(key=key, payload=dict(self._items[key]), hit=True)
        return CacheItem.miss(key)

    async def set(self, key: str, payload: RawRecord) -> None:
        if key in self._items:
            self._items.move_to_end(key)
        elif self._max_size is not None and len(self._items) >= self._max_size:
            # Evict oldest
            self._items.popitem(last=False)

        self._items[key] = dict(payload)

    async def delete(self, key: str) -> bool:
        return self._items.pop(key, None) is not None

    async def delete_pattern(self, pattern: str) -> int:
        keys_to_delete = [k for k in self._items if fnmatch.fnmatchcase(k, pattern)]
        for key in keys_to_delete:
            del self._items[key]
        return len(keys_to_delete)


# ═══════════════════════════════════════════════════════════════════════════════
# Cache Error
# ═══════════════════════════════════════════════════════════════════════════════


class CacheErrorKind(Enum):
    """Cache error kinds."""
    CONNECTION = auto()
    SERIALIZATION = auto()
    TIMEOUT = auto()


@dataclass(frozen=True, slots=True)
class CacheError:
    """Cache operation error."""
    kind: CacheErrorKind
    message: str

    @staticmethod
    def from_exception(e: Exception) -> CacheError:
        if isinstance(e, TimeoutError):
            return CacheError(CacheErrorKind.TIMEOUT, str(e))
        return CacheError(CacheErrorKind.CONNECTION, str(e))


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "CacheItem",
    "Pool",
    "MemoryPool",
    "CacheError",
    "CacheErrorKind",
)
