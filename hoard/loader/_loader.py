"""
Loader — immutable wiring of entity type, store, pool and defaults.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from combinators import lift

from hoard._types import Identifier, Result, Ok
from hoard.cache import CacheError, Pool
from hoard.entity import Entity, Hydrator, factory
from hoard.keys import CacheKeys, require_key
from hoard.loader._options import Options
from hoard.loader._resolve import Partition, WriteBack, probe, read_cached
from hoard.loader._session import Session
from hoard.query import After
from hoard.scope import Scope
from hoard.store import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Loader[E]:
    """
    Loads entities of one type from a store, through an optional pool.

    Immutable and safe to share. Per-query state lives in Session:

        async with loader.session().cursor() as articles: ...
        article = await loader.get(42)

    Build with L.loader(...) rather than directly.
    """

    hydrator: Hydrator[E]
    store: Store
    source: str
    entity_type: str
    key_field: str
    pool: Pool | None = None
    defaults: Scope = Scope()
    callback: After[E] | None = None
    options: Options = Options()
    select: tuple[str, ...] = ("*",)
    keys: CacheKeys = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "keys",
            CacheKeys(
                self.entity_type,
                self.key_field,
                namespace=self.options.namespace,
                separator=self.options.separator,
            ),
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # Sessions
    # ═══════════════════════════════════════════════════════════════════════════

    def session(self, scope: Scope | None = None) -> Session[E]:
        """Fresh per-query state, starting from the defaults unless given a scope."""
        return Session(self, scope)

    def clone_with(self, *, entity: type[Entity] | None = None, **overrides: Any) -> Loader[Any]:
        """
        Independent loader sharing everything not overridden.

        `entity` re-targets the loader at another entity class: hydrator,
        entity type and key field follow it. Cache keys are re-derived.

        Example:
            videos = articles.clone_with(entity=Video, source="videos")
        """
        if entity is not None:
            overrides.setdefault("hydrator", factory(entity))
            overrides.setdefault("entity_type", entity.entity_type)
            overrides.setdefault("key_field", entity.key_field)
        return replace(self, **overrides)

    async def unscoped[T](self, fn: Callable[[Session[E]], Awaitable[T]]) -> T:
        """
        Run `fn` with a session that ignores the default scope.

        Example:
            drafts = await loader.unscoped(lambda s: s.find_by([where("draft", "=", True)]))
        """
        return await fn(self.session().without_defaults())

    # ═══════════════════════════════════════════════════════════════════════════
    # Shortcuts
    # ═══════════════════════════════════════════════════════════════════════════

    async def get(self, identifier: Identifier, *, use_cache: bool = True) -> E | None:
        """One entity by identifier within the default scope."""
        return await self.session().load_one(require_key(identifier), use_cache=use_cache)

    async def get_many(self, identifiers: Iterable[Identifier], *, use_cache: bool = True) -> list[E]:
        return await self.session().load_many(identifiers, use_cache=use_cache)

    # ═══════════════════════════════════════════════════════════════════════════
    # Cache
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def write_back(self) -> WriteBack[E] | None:
        """Pipeline hook caching store-loaded entities, when enabled."""
        if self.pool is None or not self.options.write_back:
            return None
        return WriteBack(self.pool, self.keys, self.hydrator)

    async def read_cached(self, identifier: Identifier) -> E | None:
        if self.pool is None:
            return None
        return await read_cached(self.pool, self.keys, self.hydrator, identifier)

    async def probe(self, ids: tuple[Identifier, ...]) -> Partition[E]:
        if self.pool is None:
            return Partition.all_missing(ids)
        return await probe(self.pool, self.keys, self.hydrator, ids)

    async def is_cached(self, identifier: Identifier) -> bool:
        if self.pool is None:
            return False
        item = await self.pool.get(self.keys.key(require_key(identifier)))
        return item.hit

    async def forget(self, identifier: Identifier) -> Result[bool, CacheError]:
        """
        Evict one entity from the pool.

        Returns:
            Ok(True) if an entry was removed, Ok(False) if none existed
            (or no pool is configured), Error(CacheError) on pool failure.
        """
        if self.pool is None:
            return Ok(False)
        pool, key = self.pool, self.keys.key(require_key(identifier))

        async def evict() -> bool:
            return await pool.delete(key)

        result = await lift.catching_async(evict, on_error=CacheError.from_exception)
        logger.debug("forget %s: %s", key, result)
        return result

    async def forget_all(self) -> Result[int, CacheError]:
        """Evict every cached entity of this type. Ok(count) on success."""
        if self.pool is None:
            return Ok(0)
        pool, pattern = self.pool, self.keys.pattern()

        async def evict_all() -> int:
            return await pool.delete_pattern(pattern)

        result = await lift.catching_async(evict_all, on_error=CacheError.from_exception)
        logger.debug("forget %s: %s", pattern, result)
        return result


__all__ = ("Loader",)
