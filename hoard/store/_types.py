"""
Store types — the backing store contract.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol

from hoard._types import HoardError, RawRecord
from hoard.query._descriptor import Query, RawQuery

# ═══════════════════════════════════════════════════════════════════════════════
# Store Error
# ═══════════════════════════════════════════════════════════════════════════════


class StoreError(HoardError):
    """Operation the built-in store can't perform (e.g. unsupported raw SQL)."""


# ═══════════════════════════════════════════════════════════════════════════════
# Store Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class Store(Protocol):
    """
    Row-oriented backing store.

    Failures raised by implementations reach the caller unchanged;
    hoard adds no retries.

    Example — wrapping an existing repository:

        class ArticleStore:
            async def fetch(self, query: Query | RawQuery) -> AsyncIterator[RawRecord]:
                rows = await self.db.select(compile_sql(query))
                self._found = len(rows)
                return _aiter(rows)

            async def found_rows(self) -> int:
                return self._found

            async def count(self, query: Query) -> int:
                return await self.db.scalar(compile_count(query))
    """

    async def fetch(self, query: Query | RawQuery) -> AsyncIterator[RawRecord]:
        """
        Execute a query and return its rows.

        The returned iterator should expose aclose() when it holds
        resources; hoard always closes it.
        """
        ...

    async def found_rows(self) -> int:
        """Rows matched by the last fetch before its limit/offset."""
        ...

    async def count(self, query: Query) -> int:
        """Rows matching the query's filters."""
        ...


__all__ = ("StoreError", "Store")
