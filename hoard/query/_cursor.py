"""
Cursor — single-pass async sequence with explicit close.

    async with session.cursor() as articles:
        async for article in articles:
            ...

Closing (explicitly, by leaving the `async with`, or by exhausting the
cursor) closes the underlying source, which releases the store's
connection. Nothing is left to garbage collection.
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncIterator
from types import TracebackType


async def aclose_quietly(source: object) -> None:
    """Close an async iterator if it supports aclose()."""
    close = getattr(source, "aclose", None)
    if close is not None:
        result = close()
        if inspect.isawaitable(result):
            await result


class Cursor[T]:
    """
    Forward-only, single-pass async iterator over entities.

    Note: Not restartable. Once exhausted or closed it stays empty.
    """

    __slots__ = ("_source", "_closed")

    def __init__(self, source: AsyncIterator[T]) -> None:
        self._source = source
        self._closed = False

    @classmethod
    def empty(cls) -> Cursor[T]:
        async def nothing() -> AsyncIterator[T]:
            return
            yield

        return cls(nothing())

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> Cursor[T]:
        return self

    async def __anext__(self) -> T:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await anext(self._source)
        except BaseException:
            # Exhausted or failed: either way the source is done
            await self.aclose()
            raise

    async def aclose(self) -> None:
        """Release the underlying source. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        await aclose_quietly(self._source)

    async def __aenter__(self) -> Cursor[T]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def collect(self) -> list[T]:
        """Drain into a list and close."""
        async with self:
            return [item async for item in self]

    async def first(self) -> T | None:
        """First element or None; the cursor is closed afterwards."""
        async with self:
            async for item in self:
                return item
        return None


__all__ = ("Cursor", "aclose_quietly")
