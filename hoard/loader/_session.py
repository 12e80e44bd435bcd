"""
Session — one query at a time against a Loader.

A session owns the live Scope and the found-row state. Mutators return
the session, so criteria chain:

    articles = await (
        loader.session()
        .add_filter(where("author_id", "=", 7))
        .set_orders([order_by("position")])
        .set_pagination((2, 20))
        .load()
    )

Not safe to share between concurrent tasks; take one per query from
Loader.session().
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable
from typing import TYPE_CHECKING, Any

from hoard._types import Identifier, InvalidArgument
from hoard.entity import Entity
from hoard.keys import require_key, require_keys
from hoard.loader._merge import merge_cursor
from hoard.loader._resolve import Partition, splice, unique
from hoard.query import (
    After,
    Before,
    Cursor,
    FoundRows,
    Pipeline,
    Provenance,
    Query,
    RawQueryLike,
    all_query,
    build_query,
    coerce_raw,
    execute,
    many_query,
    one_query,
)
from hoard.scope import (
    Direction,
    Filter,
    FilterLike,
    Operator,
    Order,
    OrderLike,
    PaginationLike,
    Scope,
)

if TYPE_CHECKING:
    from hoard.loader._loader import Loader

logger = logging.getLogger(__name__)

_BEFORE = frozenset({"<", "lft", "left"})
_AFTER = frozenset({">", "rgt", "right"})


class Session[E]:
    """
    Per-query loader state: live scope plus found-row provenance.

    Every load accepts per-call hooks:
        before: record-level, may replace or skip a raw record
        after: entity-level, may replace or skip an entity
            (defaults to the loader's callback)
        use_cache: read and write the loader's pool (default True)
    """

    __slots__ = ("_loader", "_scope", "_found")

    def __init__(self, loader: Loader[E], scope: Scope | None = None) -> None:
        self._loader = loader
        self._scope = scope if scope is not None else loader.defaults.reset()
        self._found = FoundRows()

    @property
    def loader(self) -> Loader[E]:
        return self._loader

    @property
    def scope(self) -> Scope:
        return self._scope

    @property
    def provenance(self) -> Provenance:
        return self._found.provenance

    # ═══════════════════════════════════════════════════════════════════════════
    # Scope Mutators
    # ═══════════════════════════════════════════════════════════════════════════

    def add_filter(self, f: FilterLike) -> Session[E]:
        self._scope = self._scope.add_filter(f)
        return self

    def add_filters(self, fs: Iterable[FilterLike]) -> Session[E]:
        self._scope = self._scope.add_filters(fs)
        return self

    def set_filters(self, fs: Iterable[FilterLike]) -> Session[E]:
        """Replace ad-hoc filters; with default filters, append instead."""
        self._scope = self._scope.set_filters(fs)
        return self

    def add_order(self, o: OrderLike) -> Session[E]:
        self._scope = self._scope.add_order(o)
        return self

    def add_orders(self, os: Iterable[OrderLike]) -> Session[E]:
        self._scope = self._scope.add_orders(os)
        return self

    def set_orders(self, os: Iterable[OrderLike]) -> Session[E]:
        """Replace ad-hoc orders; with default orders, append instead."""
        self._scope = self._scope.set_orders(os)
        return self

    def set_pagination(self, p: PaginationLike | None) -> Session[E]:
        self._scope = self._scope.with_pagination(p)
        return self

    def set_page(self, page: int) -> Session[E]:
        self._scope = self._scope.with_page(page)
        return self

    def set_num_per_page(self, per_page: int) -> Session[E]:
        self._scope = self._scope.with_per_page(per_page)
        return self

    def reset(self) -> Session[E]:
        """Back to the loader defaults; forgets any found-row count."""
        self._scope = self._scope.reset()
        self._found.clear()
        return self

    def without_defaults(self) -> Session[E]:
        """Empty scope for the next query; defaults return on reset()."""
        self._scope = self._scope.without_defaults()
        self._found.clear()
        return self

    # ═══════════════════════════════════════════════════════════════════════════
    # Plumbing
    # ═══════════════════════════════════════════════════════════════════════════

    def _pipeline(self, before: Before | None, after: After[E] | None, use_cache: bool) -> Pipeline[E]:
        loader = self._loader
        return Pipeline(
            loader.hydrator,
            before=before,
            after=after if after is not None else loader.callback,
            on_loaded=loader.write_back if use_cache else None,
        )

    async def _capture_found(self) -> None:
        self._found.remember(await self._loader.store.found_rows())

    def _scope_query(self) -> Query:
        return build_query(self._scope, self._loader.source, select=self._loader.select)

    # ═══════════════════════════════════════════════════════════════════════════
    # Current Scope
    # ═══════════════════════════════════════════════════════════════════════════

    def cursor(
        self,
        *,
        before: Before | None = None,
        after: After[E] | None = None,
        use_cache: bool = True,
    ) -> Cursor[E]:
        """Lazily run the scope, pagination included."""
        query = self._scope_query()
        self._found.mark_builder()
        return execute(
            self._loader.store,
            query,
            self._pipeline(before, after, use_cache),
            on_executed=self._capture_found if query.calc_found_rows else None,
        )

    async def load(
        self,
        *,
        before: Before | None = None,
        after: After[E] | None = None,
        use_cache: bool = True,
    ) -> list[E]:
        return await self.cursor(before=before, after=after, use_cache=use_cache).collect()

    def __aiter__(self) -> AsyncIterator[E]:
        return self.cursor()

    async def find_by(
        self,
        filters: Iterable[FilterLike],
        *,
        before: Before | None = None,
        after: After[E] | None = None,
        use_cache: bool = True,
    ) -> list[E]:
        """Add filters, then load()."""
        return await self.add_filters(filters).load(before=before, after=after, use_cache=use_cache)

    # ═══════════════════════════════════════════════════════════════════════════
    # One
    # ═══════════════════════════════════════════════════════════════════════════

    def cursor_one(
        self,
        identifier: Identifier | None = None,
        *,
        before: Before | None = None,
        after: After[E] | None = None,
        use_cache: bool = True,
    ) -> Cursor[E]:
        """
        Lazy load_one(): at most one entity.

        Raises:
            InvalidArgument: identifier given but not valid
        """
        if identifier is not None:
            identifier = require_key(identifier)

        loader = self._loader
        query = one_query(self._scope, loader.source, loader.key_field, identifier, select=loader.select)
        self._found.mark_builder()
        pipeline = self._pipeline(before, after, use_cache)

        if identifier is None or not use_cache or loader.pool is None:
            return execute(loader.store, query, pipeline)

        async def cached_or_stored() -> AsyncIterator[E]:
            entity = await loader.read_cached(identifier)
            if entity is not None:
                logger.debug("cache hit %s", loader.keys.key(identifier))
                yield entity
                return
            logger.debug("cache miss %s", loader.keys.key(identifier))
            async with execute(loader.store, query, pipeline) as rows:
                async for entity in rows:
                    yield entity

        return Cursor(cached_or_stored())

    async def load_one(
        self,
        identifier: Identifier | None = None,
        *,
        before: Before | None = None,
        after: After[E] | None = None,
        use_cache: bool = True,
    ) -> E | None:
        """
        One entity by identifier, cache first.

        Without an identifier: the first row of the scope, cache bypassed.

        Raises:
            InvalidArgument: identifier given but not valid
        """
        return await self.cursor_one(identifier, before=before, after=after, use_cache=use_cache).first()

    # ═══════════════════════════════════════════════════════════════════════════
    # Many
    # ═══════════════════════════════════════════════════════════════════════════

    def _many_rows(self, ids: tuple[Identifier, ...], pipeline: Pipeline[E]) -> Cursor[E]:
        loader = self._loader
        query = many_query(self._scope, loader.source, loader.key_field, ids, select=loader.select)
        return execute(loader.store, query, pipeline)

    async def load_many(
        self,
        identifiers: Iterable[Identifier],
        *,
        before: Before | None = None,
        after: After[E] | None = None,
        use_cache: bool = True,
    ) -> list[E]:
        """
        Entities for a set of identifiers, in request order.

        Cache hits are served from the pool; the misses are fetched in one
        store query and written back. Identifiers found nowhere are dropped.

        Raises:
            InvalidArgument: empty set or any invalid identifier
        """
        ids = unique(require_keys(identifiers))
        loader = self._loader
        self._found.mark_builder()
        pipeline = self._pipeline(before, after, use_cache)

        if not use_cache or loader.pool is None:
            return await self._many_rows(ids, pipeline).collect()

        partition = await loader.probe(ids)
        if partition.complete:
            return partition.ordered_hits()

        fetched = await self._many_rows(partition.misses, pipeline).collect()
        return splice(partition, fetched)

    def cursor_many(
        self,
        identifiers: Iterable[Identifier],
        *,
        before: Before | None = None,
        after: After[E] | None = None,
        use_cache: bool = True,
    ) -> Cursor[E]:
        """
        Lazy load_many(): hits and store rows interleaved in request order.

        Raises:
            InvalidArgument: empty set or any invalid identifier (eagerly)
            CursorDesync: while iterating, if the store skips, reorders or
                over-returns the misses
        """
        ids = unique(require_keys(identifiers))
        loader = self._loader
        self._found.mark_builder()
        pipeline = self._pipeline(before, after, use_cache)

        if not use_cache or loader.pool is None:
            return self._many_rows(ids, pipeline)

        async def merged() -> AsyncIterator[E]:
            partition: Partition[E] = await loader.probe(ids)
            rows = self._many_rows(partition.misses, pipeline) if partition.misses else None
            async with merge_cursor(partition, rows) as entities:
                async for entity in entities:
                    yield entity

        return Cursor(merged())

    # ═══════════════════════════════════════════════════════════════════════════
    # All
    # ═══════════════════════════════════════════════════════════════════════════

    def cursor_all(
        self,
        *,
        before: Before | None = None,
        after: After[E] | None = None,
        use_cache: bool = True,
    ) -> Cursor[E]:
        """Every entity matching the scope filters, pagination ignored."""
        loader = self._loader
        query = all_query(self._scope, loader.source, select=loader.select)
        self._found.mark_builder()
        return execute(loader.store, query, self._pipeline(before, after, use_cache))

    async def load_all(
        self,
        *,
        before: Before | None = None,
        after: After[E] | None = None,
        use_cache: bool = True,
    ) -> list[E]:
        return await self.cursor_all(before=before, after=after, use_cache=use_cache).collect()

    # ═══════════════════════════════════════════════════════════════════════════
    # Raw Queries
    # ═══════════════════════════════════════════════════════════════════════════

    def cursor_from_query(
        self,
        query: RawQueryLike,
        *,
        before: Before | None = None,
        after: After[E] | None = None,
        use_cache: bool = True,
    ) -> Cursor[E]:
        """
        Lazily run caller-supplied query text.

        Accepts "SELECT ...", ("SELECT ...", binds) or
        ("SELECT ...", binds, types). Counting afterwards is only allowed
        when the text starts with SELECT SQL_CALC_FOUND_ROWS.

        Raises:
            InvalidArgument: malformed query (eagerly)
        """
        raw = coerce_raw(query)
        hinted = raw.counts_found_rows
        self._found.mark_raw(hinted)
        return execute(
            self._loader.store,
            raw,
            self._pipeline(before, after, use_cache),
            on_executed=self._capture_found if hinted else None,
        )

    async def load_from_query(
        self,
        query: RawQueryLike,
        *,
        before: Before | None = None,
        after: After[E] | None = None,
        use_cache: bool = True,
    ) -> list[E]:
        return await self.cursor_from_query(
            query, before=before, after=after, use_cache=use_cache
        ).collect()

    # ═══════════════════════════════════════════════════════════════════════════
    # Adjacency
    # ═══════════════════════════════════════════════════════════════════════════

    async def find_one_adjacent_to(
        self,
        entity: Entity,
        direction: str,
        sort_key: str = "position",
        group_key: str | None = None,
        *,
        before: Before | None = None,
        after: After[E] | None = None,
        use_cache: bool = True,
    ) -> E | None:
        """
        Nearest sibling of `entity` by `sort_key`, optionally within the
        same `group_key` value.

        Directions: "<", "left", "lft" (previous) and ">", "right", "rgt" (next).

        Raises:
            InvalidArgument: missing sort/group property, non-scalar grouping
                value or unknown direction
        """
        if not sort_key or not entity.has(sort_key):
            raise InvalidArgument(f"Entity must have a sorting property: {sort_key!r}")
        if group_key and not entity.has(group_key):
            raise InvalidArgument(f"Entity does not have a grouping property: {group_key!r}")

        if direction in _BEFORE:
            operator, order = Operator.LT, Direction.DESC
        elif direction in _AFTER:
            operator, order = Operator.GT, Direction.ASC
        else:
            raise InvalidArgument(f"Invalid adjacency direction: {direction!r}")

        filters: list[Filter] = []
        if group_key:
            grouping: Any = entity[group_key]
            if isinstance(grouping, Entity):
                grouping = grouping.id
            if grouping is not None and not isinstance(grouping, (str, int, float, bool, bytes)):
                raise InvalidArgument(
                    f"Entity must have a scalar grouping property value: {group_key!r}"
                )
            if grouping is None:
                filters.append(Filter(group_key, Operator.IS_NULL))
            else:
                filters.append(Filter(group_key, Operator.EQ, grouping))
        filters.append(Filter(sort_key, operator, entity[sort_key]))

        loader = self._loader
        self._scope = (
            self._scope
            .clear_orders()
            .add_orders([Order(sort_key, order), Order(loader.key_field, order)])
            .add_filters(filters)
        )
        query = one_query(self._scope, loader.source, loader.key_field, None, select=loader.select)
        self._found.mark_builder()
        return await execute(loader.store, query, self._pipeline(before, after, use_cache)).first()

    # ═══════════════════════════════════════════════════════════════════════════
    # Found Rows
    # ═══════════════════════════════════════════════════════════════════════════

    async def total_matches(self, fast: bool | None = None) -> int:
        """
        How many rows the scope matches, pagination ignored.

        Args:
            fast: read the store's count for its last query instead of
                counting again (defaults to Options.fast_count)

        Raises:
            LogicError: the last query was raw text without SQL_CALC_FOUND_ROWS
        """
        if fast is None:
            fast = self._loader.options.fast_count
        return await self._found.resolve(self._loader.store, self._scope_query(), fast=fast)

    async def found_objs(self, fast: bool | None = None) -> int:
        return await self.total_matches(fast)

    async def load_found(self, fast: bool = False) -> int:
        """Recount, ignoring any remembered value."""
        self._found.forget()
        return await self.total_matches(fast)

    def __repr__(self) -> str:
        return f"Session({self._loader.entity_type!r}, provenance={self.provenance.name})"


__all__ = ("Session",)
