"""
Scope — immutable, layered query criteria.

A scope carries two layers:

    defaults   set once when the loader is built, re-applied by reset()
    live       what the next query runs with (defaults + ad-hoc criteria)

Every method returns a new Scope. When defaults exist, set_filters() and
set_orders() append instead of replacing, so mandatory criteria
(soft-delete, tenant) can't be dropped by accident.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from hoard.scope._types import (
    Filter,
    Order,
    Pagination,
    to_filter,
    to_order,
    to_pagination,
)

type FilterLike = Filter | Mapping[str, Any]
type OrderLike = Order | Mapping[str, Any]
type PaginationLike = Pagination | Sequence[int] | Mapping[str, int]


@dataclass(frozen=True, slots=True)
class Defaults:
    """Criteria re-applied on every reset."""

    filters: tuple[Filter, ...] = ()
    orders: tuple[Order, ...] = ()
    pagination: Pagination | None = None


@dataclass(frozen=True, slots=True)
class Scope:
    """
    Immutable query scope.

    Example:
        scope = (
            Scope.create(filters=[where("active", "=", True)])
            .add_filter(where("author_id", "=", 7))
            .add_order(order_by("position"))
            .with_pagination(Pagination(page=2, per_page=20))
        )
    """

    defaults: Defaults = Defaults()
    filters: tuple[Filter, ...] = ()
    orders: tuple[Order, ...] = ()
    pagination: Pagination | None = None

    @classmethod
    def create(
        cls,
        *,
        filters: Iterable[FilterLike] = (),
        orders: Iterable[OrderLike] = (),
        pagination: PaginationLike | None = None,
    ) -> Scope:
        """Build a scope whose defaults are already applied."""
        defaults = Defaults(
            filters=tuple(to_filter(f) for f in filters),
            orders=tuple(to_order(o) for o in orders),
            pagination=to_pagination(pagination),
        )
        return cls(defaults=defaults).reset()

    # ───────────────────────────────────────────────────────────────────────────
    # Layers
    # ───────────────────────────────────────────────────────────────────────────

    @property
    def has_default_filters(self) -> bool:
        return bool(self.defaults.filters)

    @property
    def has_default_orders(self) -> bool:
        return bool(self.defaults.orders)

    @property
    def has_default_pagination(self) -> bool:
        return self.defaults.pagination is not None

    def reset(self) -> Scope:
        """Drop ad-hoc criteria and re-apply the defaults."""
        return Scope(
            defaults=self.defaults,
            filters=self.defaults.filters,
            orders=self.defaults.orders,
            pagination=self.defaults.pagination,
        )

    def without_defaults(self) -> Scope:
        """Empty live criteria; defaults come back on the next reset()."""
        return Scope(defaults=self.defaults)

    # ───────────────────────────────────────────────────────────────────────────
    # Filters
    # ───────────────────────────────────────────────────────────────────────────

    def add_filter(self, f: FilterLike) -> Scope:
        return replace(self, filters=(*self.filters, to_filter(f)))

    def add_filters(self, fs: Iterable[FilterLike]) -> Scope:
        return replace(self, filters=(*self.filters, *(to_filter(f) for f in fs)))

    def set_filters(self, fs: Iterable[FilterLike]) -> Scope:
        """Replace ad-hoc filters, or append when default filters exist."""
        if self.has_default_filters:
            return self.add_filters(fs)
        return replace(self, filters=tuple(to_filter(f) for f in fs))

    # ───────────────────────────────────────────────────────────────────────────
    # Orders
    # ───────────────────────────────────────────────────────────────────────────

    def add_order(self, o: OrderLike) -> Scope:
        return replace(self, orders=(*self.orders, to_order(o)))

    def add_orders(self, os: Iterable[OrderLike]) -> Scope:
        return replace(self, orders=(*self.orders, *(to_order(o) for o in os)))

    def set_orders(self, os: Iterable[OrderLike]) -> Scope:
        """Replace ad-hoc orders, or append when default orders exist."""
        if self.has_default_orders:
            return self.add_orders(os)
        return replace(self, orders=tuple(to_order(o) for o in os))

    def clear_orders(self) -> Scope:
        """Drop every live order, defaults included, for this query only."""
        return replace(self, orders=())

    # ───────────────────────────────────────────────────────────────────────────
    # Pagination
    # ───────────────────────────────────────────────────────────────────────────

    def with_pagination(self, p: PaginationLike | None) -> Scope:
        return replace(self, pagination=to_pagination(p))

    def with_page(self, page: int) -> Scope:
        per_page = self.pagination.per_page if self.pagination else 0
        return replace(self, pagination=Pagination(page=page, per_page=per_page))

    def with_per_page(self, per_page: int) -> Scope:
        page = self.pagination.page if self.pagination else 1
        return replace(self, pagination=Pagination(page=page, per_page=per_page))

    @property
    def per_page(self) -> int:
        return self.pagination.per_page if self.pagination else 0


__all__ = ("Scope", "Defaults", "FilterLike", "OrderLike", "PaginationLike")
