"""
Query — descriptors, execution, cursors and found-row counting.

    from hoard import query as Q

    q = Q.build_query(scope, "articles")
    async with Q.execute(store, q, Q.Pipeline(articles)) as cursor:
        async for article in cursor:
            ...
"""

from __future__ import annotations

from hoard.query._descriptor import (
    Query,
    build_query,
    one_query,
    many_query,
    all_query,
    count_query,
    RawQuery,
    RawQueryLike,
    coerce_raw,
)
from hoard.query._cursor import Cursor, aclose_quietly
from hoard.query._executor import (
    Before,
    After,
    OnLoaded,
    Pipeline,
    execute,
)
from hoard.query._count import Provenance, FoundRows

__all__ = (
    "Query",
    "build_query",
    "one_query",
    "many_query",
    "all_query",
    "count_query",
    "RawQuery",
    "RawQueryLike",
    "coerce_raw",
    "Cursor",
    "aclose_quietly",
    "Before",
    "After",
    "OnLoaded",
    "Pipeline",
    "execute",
    "Provenance",
    "FoundRows",
)
