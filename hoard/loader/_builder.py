"""
Loader builder — fluent API.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from hoard.cache import Pool
from hoard.entity import Entity, Factory, factory
from hoard.loader._loader import Loader
from hoard.loader._options import Options
from hoard.query import After
from hoard.scope import FilterLike, OrderLike, PaginationLike, Scope
from hoard.store import Store

# ═══════════════════════════════════════════════════════════════════════════════
# Loader Builder
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class LoaderBuilder[E: Entity]:
    """
    Fluent loader builder.

    Example:
        articles = (
            L.loader(Article, source="articles")
            .store(St.MemoryStore(tables))
            .cache(C.MemoryPool())
            .default_filters([where("active", "=", True)])
            .build()
        )
    """

    _factory: Factory[E]
    _source: str
    _store: Store | None = None
    _pool: Pool | None = None
    _filters: tuple[FilterLike, ...] = ()
    _orders: tuple[OrderLike, ...] = ()
    _pagination: PaginationLike | None = None
    _callback: After[E] | None = None
    _options: Options = Options()
    _select: tuple[str, ...] = ("*",)

    def store(self, s: Store) -> LoaderBuilder[E]:
        """Set backing store."""
        return replace(self, _store=s)

    def cache(self, pool: Pool) -> LoaderBuilder[E]:
        """Set cache pool. Without one, every load goes to the store."""
        return replace(self, _pool=pool)

    def source(self, name: str) -> LoaderBuilder[E]:
        """Set table/collection name."""
        return replace(self, _source=name)

    def select(self, *columns: str) -> LoaderBuilder[E]:
        """Restrict selected columns (default: all)."""
        return replace(self, _select=columns or ("*",))

    def default_filters(self, fs: Iterable[FilterLike]) -> LoaderBuilder[E]:
        """Filters every session starts with and returns to on reset()."""
        return replace(self, _filters=tuple(fs))

    def default_orders(self, os: Iterable[OrderLike]) -> LoaderBuilder[E]:
        return replace(self, _orders=tuple(os))

    def default_pagination(self, p: PaginationLike | None) -> LoaderBuilder[E]:
        return replace(self, _pagination=p)

    def type_field(self, name: str) -> LoaderBuilder[E]:
        """Record field naming the entity variant."""
        return replace(self, _factory=self._factory.type_field(name))

    def variant(self, tag: str, cls: type[E]) -> LoaderBuilder[E]:
        """
        Hydrate records tagged `tag` as `cls`.

        Example:
            .type_field("kind")
            .variant("video", VideoArticle)
        """
        return replace(self, _factory=self._factory.variant(tag, cls))

    def callback(self, fn: After[E]) -> LoaderBuilder[E]:
        """Default after-hook, used when a load passes none."""
        return replace(self, _callback=fn)

    def options(self, o: Options) -> LoaderBuilder[E]:
        """Set loader options."""
        return replace(self, _options=o)

    def build(self) -> Loader[E]:
        """Build loader."""
        if self._store is None:
            raise ValueError("store() is required")
        if not self._source:
            raise ValueError("source() is required")

        defaults = Scope.create(
            filters=self._filters,
            orders=self._orders,
            pagination=self._pagination,
        )
        return Loader(
            hydrator=self._factory,
            store=self._store,
            source=self._source,
            entity_type=self._factory.entity_type,
            key_field=self._factory.key_field,
            pool=self._pool,
            defaults=defaults,
            callback=self._callback,
            options=self._options,
            select=self._select,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# loader() — Entry Point
# ═══════════════════════════════════════════════════════════════════════════════


def loader[E: Entity](entity: type[E] | Factory[E], *, source: str | None = None) -> LoaderBuilder[E]:
    """
    Start building a loader for an entity class (or a ready Factory).

    `source` defaults to the entity type.

    Example:
        articles = (
            L.loader(Article, source="articles")
            .store(store)
            .cache(pool)
            .options(Options().with_namespace("blog"))
            .build()
        )
    """
    f = entity if isinstance(entity, Factory) else factory(entity)
    return LoaderBuilder(_factory=f, _source=source or f.entity_type)


__all__ = ("LoaderBuilder", "loader")
