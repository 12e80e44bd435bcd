"""
Memory store — in-process tables, for tests and prototypes.

Note: Evaluates Query descriptors directly; raw text is only understood
through the optional `raw` handler.
"""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from functools import cmp_to_key
from typing import Any

from hoard._types import RawRecord, Scalar
from hoard.query._descriptor import Query, RawQuery
from hoard.scope import Direction, Filter, Operator, Order
from hoard.store._types import StoreError

logger = logging.getLogger(__name__)

type RawHandler = Callable[[RawQuery], Iterable[RawRecord]]


# ═══════════════════════════════════════════════════════════════════════════════
# Predicates
# ═══════════════════════════════════════════════════════════════════════════════


def _like(pattern: str) -> re.Pattern[str]:
    out = []
    for ch in pattern:
        if ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return re.compile("".join(out), re.DOTALL)


def _equal(left: Scalar, right: Scalar) -> bool:
    if left == right:
        return True
    # identifiers arrive as 7 or "7"
    if isinstance(left, bool) or isinstance(right, bool):
        return False
    if isinstance(left, (int, str)) and isinstance(right, (int, str)) and type(left) is not type(right):
        return str(left) == str(right)
    return False


def _compare(left: Scalar, op: Operator, right: Scalar) -> bool:
    if left is None or right is None:
        return False
    try:
        match op:
            case Operator.LT:
                return left < right  # type: ignore[operator]
            case Operator.LE:
                return left <= right  # type: ignore[operator]
            case Operator.GT:
                return left > right  # type: ignore[operator]
            case Operator.GE:
                return left >= right  # type: ignore[operator]
    except TypeError:
        return False
    raise ValueError(f"Not a comparison operator: {op}")


def matches(record: RawRecord, f: Filter) -> bool:
    """Evaluate one filter against one record."""
    value = record.get(f.property)
    match f.operator:
        case Operator.EQ:
            return value is not None and _equal(value, f.value)
        case Operator.NE:
            return value is not None and f.value is not None and not _equal(value, f.value)
        case Operator.IN:
            return value is not None and any(_equal(value, v) for v in f.values)
        case Operator.NOT_IN:
            return value is not None and not any(_equal(value, v) for v in f.values)
        case Operator.LIKE:
            return isinstance(value, str) and _like(str(f.value)).fullmatch(value) is not None
        case Operator.IS_NULL:
            return value is None
        case Operator.IS_NOT_NULL:
            return value is not None
        case _:
            return _compare(value, f.operator, f.value)


def _compare_rows(orders: tuple[Order, ...]) -> Callable[[RawRecord, RawRecord], int]:
    def rank(order: Order, record: RawRecord) -> tuple[int, Any]:
        value = record.get(order.property)
        if order.values:
            for position, candidate in enumerate(order.values):
                if _equal(value, candidate):
                    return (0, position)
            return (1, 0)
        # NULLs sort first ascending
        return (0, None) if value is None else (1, value)

    def compare(a: RawRecord, b: RawRecord) -> int:
        for order in orders:
            ra, rb = rank(order, a), rank(order, b)
            if ra == rb:
                continue
            if ra[0] != rb[0]:
                result = -1 if ra[0] < rb[0] else 1
            else:
                result = -1 if ra[1] < rb[1] else 1
            if order.direction is Direction.DESC and not order.values:
                result = -result
            return result
        return 0

    return compare


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Store
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryStore:
    """
    In-memory store over `{source: [record, ...]}`.

    `executed` lists every fetched query, `counted` every count query,
    in call order.

    Example:
        store = MemoryStore({"articles": [{"id": 1, "title": "Hello"}]})
    """

    def __init__(
        self,
        tables: Mapping[str, Iterable[RawRecord]] | None = None,
        *,
        raw: RawHandler | None = None,
    ) -> None:
        self._tables: dict[str, list[dict[str, Scalar]]] = {
            source: [dict(r) for r in rows] for source, rows in (tables or {}).items()
        }
        self._raw = raw
        self._found = 0
        self.executed: list[Query | RawQuery] = []
        self.counted: list[Query] = []

    # ───────────────────────────────────────────────────────────────────────────
    # Data
    # ───────────────────────────────────────────────────────────────────────────

    def rows(self, source: str) -> list[dict[str, Scalar]]:
        return [dict(r) for r in self._tables.get(source, [])]

    def insert(self, source: str, record: RawRecord) -> None:
        self._tables.setdefault(source, []).append(dict(record))

    def remove(self, source: str, field: str, value: Scalar) -> int:
        """Delete rows where field == value. Returns count."""
        rows = self._tables.get(source, [])
        kept = [r for r in rows if r.get(field) != value]
        self._tables[source] = kept
        return len(rows) - len(kept)

    # ───────────────────────────────────────────────────────────────────────────
    # Store protocol
    # ───────────────────────────────────────────────────────────────────────────

    def _select(self, query: Query) -> list[dict[str, Scalar]]:
        if query.source not in self._tables:
            raise StoreError(f"Unknown source: {query.source}")
        return [
            dict(r)
            for r in self._tables[query.source]
            if all(matches(r, f) for f in query.filters)
        ]

    async def fetch(self, query: Query | RawQuery) -> AsyncIterator[RawRecord]:
        self.executed.append(query)
        logger.debug("memory fetch: %s", query.describe())

        if isinstance(query, RawQuery):
            if self._raw is None:
                raise StoreError("MemoryStore has no raw query handler")
            rows = [dict(r) for r in self._raw(query)]
            self._found = len(rows)
            return _iterate(rows)

        rows = self._select(query)
        self._found = len(rows)
        if query.orders:
            rows.sort(key=cmp_to_key(_compare_rows(query.orders)))
        if query.offset:
            rows = rows[query.offset:]
        if query.limit is not None:
            rows = rows[: query.limit]
        if query.select != ("*",):
            rows = [{k: r.get(k) for k in query.select} for r in rows]
        return _iterate(rows)

    async def found_rows(self) -> int:
        return self._found

    async def count(self, query: Query) -> int:
        self.counted.append(query)
        return len(self._select(query))


async def _iterate(rows: list[dict[str, Scalar]]) -> AsyncIterator[RawRecord]:
    for row in rows:
        yield row


__all__ = ("MemoryStore", "RawHandler", "matches")
