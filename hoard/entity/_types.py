"""
Entity types.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, ClassVar, Protocol

from hoard._types import Identifier, RawRecord, Scalar

# ═══════════════════════════════════════════════════════════════════════════════
# Entity — Hydrated Record
# ═══════════════════════════════════════════════════════════════════════════════


class Entity:
    """
    Hydrated record of one entity type.

    Subclasses pick the cache namespace and identifier column:

        class Article(Entity):
            entity_type = "article"
            key_field = "id"

    Note: Built whole from a raw record; there is no partial state.
    """

    entity_type: ClassVar[str] = "entity"
    key_field: ClassVar[str] = "id"

    __slots__ = ("_data",)

    def __init__(self, data: RawRecord) -> None:
        self._data: dict[str, Scalar] = dict(data)

    @property
    def id(self) -> Identifier | None:
        return self._data.get(self.key_field)  # type: ignore[return-value]

    def __getitem__(self, field: str) -> Scalar:
        return self._data[field]

    def __contains__(self, field: object) -> bool:
        return field in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def get(self, field: str, default: Scalar = None) -> Scalar:
        return self._data.get(field, default)

    def has(self, field: str) -> bool:
        """Whether the entity carries this property."""
        return field in self._data

    def data(self) -> dict[str, Scalar]:
        """Copy of the flat field mapping."""
        return dict(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return type(self) is type(other) and self._data == other._data

    def __hash__(self) -> int:
        return hash((type(self), self.id))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.key_field}={self.id!r})"


# ═══════════════════════════════════════════════════════════════════════════════
# Hydrator Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class Hydrator[E](Protocol):
    """
    Turns raw records into entities and back.

    Raise HydrationFailure from hydrate() to have the record skipped.
    """

    def hydrate(self, record: RawRecord) -> E:
        ...

    def serialize(self, entity: E) -> RawRecord:
        ...


def entity_data(entity: Any) -> Mapping[str, Scalar]:
    """Flat data of an Entity or any mapping-like object."""
    if isinstance(entity, Entity):
        return entity.data()
    if isinstance(entity, Mapping):
        return dict(entity)
    raise TypeError(f"Can not serialize {type(entity).__name__}")


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("Entity", "Hydrator", "entity_data")
