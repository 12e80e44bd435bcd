"""
Cache — raw-record pools.

    from hoard import cache as C

    pool = C.MemoryPool(max_size=1000)
    item = await pool.get("object:article:id:42")
    removed = await pool.delete("object:article:id:42")
"""

from __future__ import annotations

from hoard.cache._types import (
    CacheItem,
    Pool,
    MemoryPool,
    CacheError,
    CacheErrorKind,
)

__all__ = (
    "CacheItem",
    "Pool",
    "MemoryPool",
    "CacheError",
    "CacheErrorKind",
)
