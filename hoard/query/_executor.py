"""
Query execution — rows in, entities out.

    store.fetch(query) ──► before(record) ──► hydrate ──► after(entity) ──► on_loaded(entity)
                                 │                │              │
                                 └── None: skip ──┴── failure ───┴── None: skip
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from hoard._types import HydrationFailure, RawRecord
from hoard.entity import Hydrator
from hoard.query._cursor import Cursor, aclose_quietly
from hoard.query._descriptor import Query, RawQuery

if TYPE_CHECKING:
    from hoard.store import Store

logger = logging.getLogger(__name__)

type Before = Callable[[RawRecord], RawRecord | None]
"""Record-level hook. Return a (possibly new) record, or None to skip."""

type After[E] = Callable[[E], E | None]
"""Entity-level hook. Return the entity, or None to skip."""

type OnLoaded[E] = Callable[[E], Awaitable[None]]


# ═══════════════════════════════════════════════════════════════════════════════
# Pipeline
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Pipeline[E]:
    """Per-record hydration steps."""

    hydrator: Hydrator[E]
    before: Before | None = None
    after: After[E] | None = None
    on_loaded: OnLoaded[E] | None = None

    async def process(self, record: RawRecord) -> E | None:
        """Hydrate one record. None means the record was skipped."""
        if self.before is not None:
            record = self.before(record)
            if record is None:
                return None

        try:
            entity = self.hydrator.hydrate(record)
        except HydrationFailure as e:
            logger.debug("skipped record: %s", e)
            return None

        if self.after is not None:
            entity = self.after(entity)
            if entity is None:
                return None

        if self.on_loaded is not None:
            await self.on_loaded(entity)
        return entity


# ═══════════════════════════════════════════════════════════════════════════════
# execute() — Lazy
# ═══════════════════════════════════════════════════════════════════════════════


def execute[E](
    store: Store,
    query: Query | RawQuery,
    pipeline: Pipeline[E],
    *,
    on_executed: Callable[[], Awaitable[None]] | None = None,
) -> Cursor[E]:
    """
    Run a query lazily.

    Nothing reaches the store until the first element is pulled.
    on_executed runs once the store has executed the query, before the
    first row is hydrated.
    """

    async def entities() -> AsyncIterator[E]:
        logger.debug("execute: %s", query.describe())
        rows = await store.fetch(query)
        try:
            if on_executed is not None:
                await on_executed()
            async for record in rows:
                entity = await pipeline.process(record)
                if entity is not None:
                    yield entity
        finally:
            await aclose_quietly(rows)

    return Cursor(entities())


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "Before",
    "After",
    "OnLoaded",
    "Pipeline",
    "execute",
)
