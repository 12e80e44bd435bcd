"""
Store — backing stores that turn query descriptors into raw records.

    from hoard import store as St

    memory = St.MemoryStore({"articles": [{"id": 1, "title": "Hello"}]})
    sql = St.SQLAlchemyStore(session_factory, Base.metadata)
"""

from __future__ import annotations

from hoard.store._types import Store, StoreError
from hoard.store._memory import MemoryStore, RawHandler, matches
from hoard.store._sqlalchemy import (
    SQLAlchemyStore,
    compile_select,
    compile_count,
    compile_raw,
)

__all__ = (
    "Store",
    "StoreError",
    "MemoryStore",
    "RawHandler",
    "matches",
    "SQLAlchemyStore",
    "compile_select",
    "compile_count",
    "compile_raw",
)
