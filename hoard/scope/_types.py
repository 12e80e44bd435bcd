"""
Scope fragments — filters, orders, pagination.

Each fragment is an immutable value. Mappings in the shape used by
configuration files are accepted too:

    {"property": "status", "operator": "=", "value": "published"}
    {"property": "id", "operator": "IN", "values": [3, 1, 2]}
    {"property": "position", "direction": "desc"}
    {"page": 2, "num_per_page": 20}
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from hoard._types import InvalidArgument, Scalar

# ═══════════════════════════════════════════════════════════════════════════════
# Operators & Directions
# ═══════════════════════════════════════════════════════════════════════════════


class Operator(Enum):
    """Filter comparison operators."""

    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    IN = "IN"
    NOT_IN = "NOT IN"
    LIKE = "LIKE"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"

    @property
    def takes_values(self) -> bool:
        return self in (Operator.IN, Operator.NOT_IN)

    @property
    def takes_value(self) -> bool:
        return self not in (Operator.IN, Operator.NOT_IN, Operator.IS_NULL, Operator.IS_NOT_NULL)


_OPERATOR_ALIASES = {"==": Operator.EQ, "<>": Operator.NE}


class Direction(Enum):
    ASC = "ASC"
    DESC = "DESC"


# ═══════════════════════════════════════════════════════════════════════════════
# Filter
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Filter:
    """
    One predicate on one property.

    Example:
        Filter("status", Operator.EQ, "published")
        Filter("id", Operator.IN, values=(1, 2, 3))
        Filter("deleted_at", Operator.IS_NULL)
    """

    property: str
    operator: Operator = Operator.EQ
    value: Scalar = None
    values: tuple[Scalar, ...] = ()

    def __post_init__(self) -> None:
        if not self.property:
            raise InvalidArgument("Filter requires a property")
        if self.operator.takes_values and not self.values:
            raise InvalidArgument(f"{self.operator.value} filter on {self.property!r} requires values")


def where(property: str, operator: str | Operator = Operator.EQ, value: Any = None) -> Filter:
    """
    Shorthand filter constructor.

        where("status", "=", "published")
        where("id", "IN", [1, 2, 3])
        where("deleted_at", "IS NULL")
    """
    op = _operator(operator)
    if op.takes_values:
        return Filter(property, op, values=_scalars(value))
    return Filter(property, op, value=value if op.takes_value else None)


def to_filter(raw: Filter | Mapping[str, Any]) -> Filter:
    """Coerce a Filter or a filter mapping."""
    if isinstance(raw, Filter):
        return raw
    if isinstance(raw, Mapping):
        if "property" not in raw:
            raise InvalidArgument(f"Filter mapping requires a 'property': {raw!r}")
        op = _operator(raw.get("operator", Operator.IN if "values" in raw else Operator.EQ))
        if op.takes_values:
            return Filter(raw["property"], op, values=_scalars(raw.get("values", raw.get("value"))))
        return Filter(raw["property"], op, value=raw.get("value") if op.takes_value else None)
    raise InvalidArgument(f"Filter must be a Filter or a mapping, received {type(raw).__name__}")


def _operator(raw: str | Operator) -> Operator:
    if isinstance(raw, Operator):
        return raw
    if not isinstance(raw, str):
        raise InvalidArgument(f"Invalid filter operator: {raw!r}")
    normalized = " ".join(raw.upper().split())
    if normalized in _OPERATOR_ALIASES:
        return _OPERATOR_ALIASES[normalized]
    try:
        return Operator(normalized)
    except ValueError:
        raise InvalidArgument(f"Invalid filter operator: {raw!r}") from None


def _scalars(raw: Any) -> tuple[Scalar, ...]:
    if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Iterable):
        raise InvalidArgument(f"Expected a list of values, received {raw!r}")
    return tuple(raw)


# ═══════════════════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Order:
    """
    One sort clause.

    With `values`, rows are ranked by the position of their property value in
    that list (values not listed sort last); `direction` is then ignored.
    """

    property: str
    direction: Direction = Direction.ASC
    values: tuple[Scalar, ...] = ()

    def __post_init__(self) -> None:
        if not self.property:
            raise InvalidArgument("Order requires a property")


def order_by(property: str, direction: str | Direction = Direction.ASC) -> Order:
    return Order(property, _direction(direction))


def order_by_values(property: str, values: Iterable[Scalar]) -> Order:
    """Order matching an explicit value list, e.g. requested identifiers."""
    return Order(property, values=_scalars(values))


def to_order(raw: Order | Mapping[str, Any]) -> Order:
    """Coerce an Order or an order mapping."""
    if isinstance(raw, Order):
        return raw
    if isinstance(raw, Mapping):
        if "property" not in raw:
            raise InvalidArgument(f"Order mapping requires a 'property': {raw!r}")
        if raw.get("values"):
            return order_by_values(raw["property"], raw["values"])
        return order_by(raw["property"], raw.get("direction", Direction.ASC))
    raise InvalidArgument(f"Order must be an Order or a mapping, received {type(raw).__name__}")


def _direction(raw: str | Direction) -> Direction:
    if isinstance(raw, Direction):
        return raw
    if isinstance(raw, str) and raw.upper() in ("ASC", "DESC"):
        return Direction(raw.upper())
    raise InvalidArgument(f"Invalid order direction: {raw!r}")


# ═══════════════════════════════════════════════════════════════════════════════
# Pagination
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Pagination:
    """Page number (1-based) and page size."""

    page: int = 1
    per_page: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.page, bool) or not isinstance(self.page, int) or self.page < 1:
            raise InvalidArgument(f"Page must be a positive integer, received {self.page!r}")
        if isinstance(self.per_page, bool) or not isinstance(self.per_page, int) or self.per_page < 0:
            raise InvalidArgument(f"Page size must be a non-negative integer, received {self.per_page!r}")

    @property
    def limit(self) -> int | None:
        """Row limit, None when unbounded."""
        return self.per_page or None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def to_pagination(raw: Pagination | Sequence[int] | Mapping[str, int] | None) -> Pagination | None:
    """Coerce a Pagination, a (page, per_page) pair or a pagination mapping."""
    if raw is None or isinstance(raw, Pagination):
        return raw
    if isinstance(raw, Mapping):
        return Pagination(
            page=raw.get("page", 1),
            per_page=raw.get("num_per_page", raw.get("per_page", 0)),
        )
    if isinstance(raw, Sequence) and not isinstance(raw, str) and len(raw) == 2:
        return Pagination(page=raw[0], per_page=raw[1])
    raise InvalidArgument(f"Invalid pagination: {raw!r}")


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

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
)
