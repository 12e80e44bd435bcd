"""
Lazy merge — stream cache hits and store rows in request order.

The store cursor must return exactly the misses, in miss order (the
membership query's value-list order guarantees it). Anything else is a
desync and fails loudly.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import cast

from hoard._types import CursorDesync
from hoard.loader._resolve import Partition, identity, normalize
from hoard.query import Cursor

_END = object()


def merge_cursor[E](partition: Partition[E], rows: Cursor[E] | None) -> Cursor[E]:
    """
    Interleave hits with store rows, one entity at a time.

    Args:
        partition: hits by position and misses in request order
        rows: store cursor over the misses; None when there are none

    Raises (while iterating):
        CursorDesync: the store under-returned, returned a different
            identifier than the next miss, or had rows left over
    """
    if partition.misses and rows is None:
        raise ValueError("rows are required when the partition has misses")

    async def merged() -> AsyncIterator[E]:
        try:
            for position, identifier in enumerate(partition.ids):
                if position in partition.hits:
                    yield partition.hits[position]
                    continue

                entity = await anext(cast("Cursor[E]", rows), _END)
                if entity is _END:
                    raise CursorDesync(f"Store ran out of rows before identifier {identifier!r}")
                if normalize(identity(entity)) != normalize(identifier):
                    raise CursorDesync(
                        f"Store returned {identity(entity)!r} where {identifier!r} was expected"
                    )
                yield entity  # type: ignore[misc]

            if rows is not None and await anext(rows, _END) is not _END:
                raise CursorDesync("Store returned rows past the requested identifiers")
        finally:
            if rows is not None:
                await rows.aclose()

    return Cursor(merged())


__all__ = ("merge_cursor",)
