"""
SQLAlchemy integration — async store over SQLAlchemy Core tables.

Usage:
    1. Declare tables (Core or ORM, anything that lands in a MetaData):

        class ArticleTable(Base):
            __tablename__ = "articles"
            id: Mapped[int] = mapped_column(primary_key=True)
            title: Mapped[str]
            position: Mapped[int]

    2. Create the store:

        store = SQLAlchemyStore(session_factory, Base.metadata)

    3. Build a loader on it:

        articles = L.loader(Article, source="articles").store(store).build()
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping, Sequence
from typing import Any

from sqlalchemy import (
    ColumnElement,
    MetaData,
    Select,
    Table,
    TextClause,
    and_,
    bindparam,
    case,
    func,
    literal_column,
    select,
    text,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hoard._types import RawRecord
from hoard.query._descriptor import Query, RawQuery
from hoard.scope import Direction, Filter, Operator, Order
from hoard.store._types import StoreError

logger = logging.getLogger(__name__)

# Dialects that keep a FOUND_ROWS() counter per connection.
_FOUND_ROWS_DIALECTS = frozenset({"mysql", "mariadb"})


# ═══════════════════════════════════════════════════════════════════════════════
# Compilation
# ═══════════════════════════════════════════════════════════════════════════════


def _clause(table: Table, f: Filter) -> ColumnElement[bool]:
    column = table.c[f.property]
    match f.operator:
        case Operator.EQ:
            return column == f.value
        case Operator.NE:
            return column != f.value
        case Operator.LT:
            return column < f.value
        case Operator.LE:
            return column <= f.value
        case Operator.GT:
            return column > f.value
        case Operator.GE:
            return column >= f.value
        case Operator.IN:
            return column.in_(f.values)
        case Operator.NOT_IN:
            return column.not_in(f.values)
        case Operator.LIKE:
            return column.like(f.value)
        case Operator.IS_NULL:
            return column.is_(None)
        case Operator.IS_NOT_NULL:
            return column.is_not(None)


def _order(table: Table, o: Order) -> ColumnElement[Any]:
    column = table.c[o.property]
    if o.values:
        ranks = {v: i for i, v in enumerate(o.values)}
        return case(ranks, value=column, else_=len(o.values))
    return column.desc() if o.direction is Direction.DESC else column.asc()


def _where(table: Table, filters: tuple[Filter, ...]) -> ColumnElement[bool] | None:
    if not filters:
        return None
    return and_(*(_clause(table, f) for f in filters))


def compile_select(table: Table, query: Query) -> Select[Any]:
    """Compile a Query into a Core SELECT."""
    if query.select == ("*",):
        stmt = select(table)
    else:
        stmt = select(*(table.c[name] for name in query.select))
    where = _where(table, query.filters)
    if where is not None:
        stmt = stmt.where(where)
    if query.orders:
        stmt = stmt.order_by(*(_order(table, o) for o in query.orders))
    if query.limit is not None:
        stmt = stmt.limit(query.limit)
    if query.offset:
        stmt = stmt.offset(query.offset)
    return stmt


def compile_count(table: Table, query: Query) -> Select[Any]:
    """Compile the count of rows matching a Query's filters."""
    stmt = select(func.count()).select_from(table)
    where = _where(table, query.filters)
    if where is not None:
        stmt = stmt.where(where)
    return stmt


def compile_raw(query: RawQuery) -> tuple[TextClause, dict[str, Any]]:
    """
    Compile a RawQuery into a text clause and its named parameters.

    Positional binds fill `:p0`, `:p1`, ... in order.
    """
    stmt = text(query.text)
    if isinstance(query.binds, Mapping):
        params = dict(query.binds)
    else:
        params = {f"p{i}": value for i, value in enumerate(query.binds)}

    if isinstance(query.types, Mapping):
        types = dict(query.types)
    else:
        types = {f"p{i}": t for i, t in enumerate(query.types)}
    if types:
        stmt = stmt.bindparams(*(bindparam(name, type_=t) for name, t in types.items()))
    return stmt, params


# ═══════════════════════════════════════════════════════════════════════════════
# SQLAlchemy Store
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyStore:
    """
    Async store over SQLAlchemy Core.

    Each fetch opens its own session and streams rows from it; the session
    is released when the row iterator finishes or is closed.

    Example:
        store = SQLAlchemyStore(async_sessionmaker(engine), Base.metadata)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tables: MetaData | Mapping[str, Table],
    ) -> None:
        """
        Args:
            session_factory: SQLAlchemy async session factory
            tables: MetaData or mapping of source name → Table
        """
        self._session_factory = session_factory
        self._tables: Mapping[str, Table] = (
            tables.tables if isinstance(tables, MetaData) else tables
        )
        self._found: int | None = 0
        self._last: Query | None = None

    def table(self, source: str) -> Table:
        try:
            return self._tables[source]
        except KeyError:
            raise StoreError(f"Unknown source: {source}") from None

    async def fetch(self, query: Query | RawQuery) -> AsyncIterator[RawRecord]:
        if isinstance(query, RawQuery):
            return await self._fetch_raw(query)

        table = self.table(query.source)
        stmt = compile_select(table, query)
        logger.debug("sql fetch: %s", stmt)

        self._last, self._found = query, None
        if query.calc_found_rows:
            self._found = await self.count(query)
        # an unpaginated stream that runs to the end has seen every match
        tally = query.limit is None and not query.offset
        return self._stream(stmt, {}, tally=query if tally else None)

    async def _fetch_raw(self, query: RawQuery) -> AsyncIterator[RawRecord]:
        stmt, params = compile_raw(query)
        logger.debug("sql raw: %s %r", query.text, params)
        self._last, self._found = None, None

        if not query.counts_found_rows:
            return self._stream(stmt, params)

        # FOUND_ROWS() must run on the connection that ran the query, so
        # the rows are buffered first.
        async with self._session_factory() as session:
            dialect = session.bind.dialect.name if session.bind is not None else ""
            if dialect not in _FOUND_ROWS_DIALECTS:
                raise StoreError(f"FOUND_ROWS() is not available on {dialect or 'this'} dialect")
            result = await session.execute(stmt, params)
            rows = [dict(row) for row in result.mappings()]
            found = await session.execute(select(literal_column("FOUND_ROWS()")))
            self._found = int(found.scalar_one())
        return _iterate(rows)

    async def _stream(
        self,
        stmt: Select[Any] | TextClause,
        params: Mapping[str, Any],
        *,
        tally: Query | None = None,
    ) -> AsyncIterator[RawRecord]:
        seen = 0
        async with self._session_factory() as session:
            result = await session.stream(stmt, dict(params))
            try:
                async for row in result.mappings():
                    seen += 1
                    yield dict(row)
            finally:
                await result.close()
        if tally is not None and self._last is tally:
            self._found = seen

    async def found_rows(self) -> int:
        """
        Rows matched by the last fetch before its limit/offset.

        Counted from the stream when an unpaginated fetch was read to the
        end, otherwise with a COUNT over the last query's filters.
        """
        if self._found is None:
            if self._last is None:
                raise StoreError("No found-row count for the last raw query")
            self._found = await self.count(self._last)
        return self._found

    async def count(self, query: Query) -> int:
        table = self.table(query.source)
        stmt = compile_count(table, query)
        logger.debug("sql count: %s", stmt)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())


async def _iterate(rows: Sequence[RawRecord]) -> AsyncIterator[RawRecord]:
    for row in rows:
        yield row


__all__ = (
    "SQLAlchemyStore",
    "compile_select",
    "compile_count",
    "compile_raw",
)
