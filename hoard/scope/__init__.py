"""
Scope — filters, orders and pagination.

    from hoard import scope as Sc

    scope = (
        Sc.Scope.create(filters=[Sc.where("deleted", "=", False)])
        .set_filters([Sc.where("author_id", "=", 7)])   # appended to defaults
        .add_order(Sc.order_by("position", "desc"))
    )
"""

from __future__ import annotations

from hoard.scope._types import (
    Operator,
    Direction,
    Filter,
    where,
    to_filter,
    Order,
    order_by,
    order_by_values,
    to_order,
    Pagination,
    to_pagination,
)
from hoard.scope._scope import (
    Scope,
    Defaults,
    FilterLike,
    OrderLike,
    PaginationLike,
)

__all__ = (
    "Operator",
    "Direction",
    "Filter",
    "where",
    "to_filter",
    "Order",
    "order_by",
    "order_by_values",
    "to_order",
    "Pagination",
    "to_pagination",
    "Scope",
    "Defaults",
    "FilterLike",
    "OrderLike",
    "PaginationLike",
)
