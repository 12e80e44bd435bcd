"""
Loader — cache-augmented entity loading.

    from hoard import loader as L
    from hoard.scope import where

    articles = (
        L.loader(Article, source="articles")
        .store(store)
        .cache(pool)
        .build()
    )

    article = await articles.get(42)                  # pool, then store
    batch = await articles.get_many([3, 1, 2])        # order kept, one store query

    session = articles.session().add_filter(where("author_id", "=", 7))
    async with session.cursor_many([5, 9, 11]) as cursor:
        async for article in cursor:
            ...
"""

from __future__ import annotations

from hoard.loader._options import Options
from hoard.loader._resolve import Partition, WriteBack, splice, probe, unique
from hoard.loader._merge import merge_cursor
from hoard.loader._session import Session
from hoard.loader._loader import Loader
from hoard.loader._builder import LoaderBuilder, loader

__all__ = (
    "Options",
    "Partition",
    "WriteBack",
    "splice",
    "probe",
    "unique",
    "merge_cursor",
    "Session",
    "Loader",
    "LoaderBuilder",
    "loader",
)
