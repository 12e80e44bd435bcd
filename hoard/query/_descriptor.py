"""
Query descriptors — backend-neutral compiled queries.

    Query       built from a Scope (select, source, filters, orders, limit)
    RawQuery    text supplied by the caller, with optional binds and types

Stores turn either into rows; nothing here knows SQL dialects.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from hoard._types import Identifier, InvalidArgument, Scalar
from hoard.scope import Filter, Operator, Order, Scope, order_by_values

# ═══════════════════════════════════════════════════════════════════════════════
# Query — Built From Scope
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Query:
    """
    Compiled query descriptor.

    calc_found_rows: ask the store to remember how many rows matched
    before limit/offset (see Store.found_rows).
    """

    source: str
    select: tuple[str, ...] = ("*",)
    filters: tuple[Filter, ...] = ()
    orders: tuple[Order, ...] = ()
    limit: int | None = None
    offset: int = 0
    calc_found_rows: bool = False

    def describe(self) -> str:
        """Readable one-line form, for logs."""
        parts = [f"SELECT {', '.join(self.select)} FROM {self.source}"]
        if self.filters:
            parts.append("WHERE " + " AND ".join(_describe_filter(f) for f in self.filters))
        if self.orders:
            parts.append("ORDER BY " + ", ".join(_describe_order(o) for o in self.orders))
        if self.limit is not None:
            parts.append(f"LIMIT {self.limit}")
        if self.offset:
            parts.append(f"OFFSET {self.offset}")
        return " ".join(parts)


def _describe_filter(f: Filter) -> str:
    if f.operator.takes_values:
        return f"{f.property} {f.operator.value} {list(f.values)!r}"
    if f.operator.takes_value:
        return f"{f.property} {f.operator.value} {f.value!r}"
    return f"{f.property} {f.operator.value}"


def _describe_order(o: Order) -> str:
    if o.values:
        return f"{o.property} IN ORDER {list(o.values)!r}"
    return f"{o.property} {o.direction.value}"


def build_query(scope: Scope, source: str, *, select: tuple[str, ...] = ("*",)) -> Query:
    """
    Compile the full scope, pagination included.

    A truncating page asks for a found-row count, except single-row pages.
    """
    limit = scope.pagination.limit if scope.pagination else None
    offset = scope.pagination.offset if scope.pagination and limit else 0
    return Query(
        source=source,
        select=select,
        filters=scope.filters,
        orders=scope.orders,
        limit=limit,
        offset=offset,
        calc_found_rows=limit is not None and limit != 1,
    )


def one_query(
    scope: Scope,
    source: str,
    key_field: str,
    identifier: Identifier | None,
    *,
    select: tuple[str, ...] = ("*",),
) -> Query:
    """First row of the scope, narrowed to one identifier when given."""
    filters = scope.filters
    if identifier is not None:
        filters = (*filters, Filter(key_field, Operator.EQ, identifier))
    return Query(source=source, select=select, filters=filters, orders=scope.orders, limit=1)


def many_query(
    scope: Scope,
    source: str,
    key_field: str,
    identifiers: Sequence[Identifier],
    *,
    select: tuple[str, ...] = ("*",),
) -> Query:
    """
    Rows for an identifier set, in the order of `identifiers`.

    The value-list order comes first so scope orders can't reorder the rows.
    """
    ids = tuple(identifiers)
    return Query(
        source=source,
        select=select,
        filters=(*scope.filters, Filter(key_field, Operator.IN, values=ids)),
        orders=(order_by_values(key_field, ids), *scope.orders),
        limit=len(ids),
    )


def all_query(scope: Scope, source: str, *, select: tuple[str, ...] = ("*",)) -> Query:
    """Every row matching the scope filters, pagination ignored."""
    return Query(source=source, select=select, filters=scope.filters, orders=scope.orders)


def count_query(query: Query) -> Query:
    """Count-only variant: same filters, no orders, no limit."""
    return replace(query, orders=(), limit=None, offset=0, calc_found_rows=False)


# ═══════════════════════════════════════════════════════════════════════════════
# RawQuery — Caller Supplied
# ═══════════════════════════════════════════════════════════════════════════════

_CALC_FOUND_ROWS = re.compile(r"^\s*SELECT\s+SQL_CALC_FOUND_ROWS\b", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class RawQuery:
    """
    Query text plus bind values and bind type hints.

    binds: positional sequence or name → value mapping.
    types: matching sequence or mapping of backend type hints.
    """

    text: str
    binds: Sequence[Scalar] | Mapping[str, Scalar] = ()
    types: Sequence[Any] | Mapping[str, Any] = ()

    @property
    def counts_found_rows(self) -> bool:
        """Whether the query opted into found-row counting."""
        return _CALC_FOUND_ROWS.match(self.text) is not None

    def describe(self) -> str:
        return self.text


type RawQueryLike = RawQuery | str | Sequence[Any]


def coerce_raw(query: Any) -> RawQuery:
    """
    Accept a RawQuery, a string, or a (text, binds[, types]) list/tuple.

    Raises:
        InvalidArgument: for any other shape
    """
    if isinstance(query, RawQuery):
        return query
    if isinstance(query, str):
        return RawQuery(text=query.strip())
    if isinstance(query, (list, tuple)) and 2 <= len(query) <= 3:
        text, binds, *rest = query
        types = rest[0] if rest else ()
        if not isinstance(text, str):
            raise InvalidArgument(f"Raw query text must be a string, received {type(text).__name__}")
        if binds is None:
            binds = ()
        if types is None:
            types = ()
        if isinstance(binds, str) or not isinstance(binds, (Sequence, Mapping)):
            raise InvalidArgument(f"Raw query binds must be a sequence or mapping, received {binds!r}")
        if isinstance(types, str) or not isinstance(types, (Sequence, Mapping)):
            raise InvalidArgument(f"Raw query types must be a sequence or mapping, received {types!r}")
        return RawQuery(text=text.strip(), binds=binds, types=types)
    raise InvalidArgument(
        "The query must be a string or a sequence: "
        f"[text, binds, types]; received {query!r}"
    )


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
)
