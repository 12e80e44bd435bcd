"""
Entity factory — tagged-variant hydration.

A discriminator column picks the entity class per record:

    factory = (
        factory(Content)
        .type_field("kind")
        .variant("article", Article)
        .variant("video", Video)
    )

    factory.hydrate({"id": 1, "kind": "video"})  # Video(id=1)
"""

from __future__ import annotations

from dataclasses import dataclass

from hoard._types import HydrationFailure, RawRecord
from hoard.entity._types import Entity, entity_data


@dataclass(frozen=True, slots=True)
class Factory[E: Entity]:
    """
    Immutable hydrator over a closed set of entity classes.

    Records without the discriminator hydrate as `base`.
    Records with an unregistered tag fail hydration and are skipped.
    """

    base: type[E]
    discriminator: str | None = None
    variants: tuple[tuple[str, type[E]], ...] = ()

    @property
    def entity_type(self) -> str:
        return self.base.entity_type

    @property
    def key_field(self) -> str:
        return self.base.key_field

    def type_field(self, name: str) -> Factory[E]:
        """Set the discriminator column."""
        return Factory(base=self.base, discriminator=name, variants=self.variants)

    def variant(self, tag: str, cls: type[E]) -> Factory[E]:
        """Register the class used when the discriminator equals `tag`."""
        if not issubclass(cls, self.base):
            raise TypeError(f"{cls.__name__} is not a {self.base.__name__}")
        kept = tuple((t, c) for t, c in self.variants if t != tag)
        return Factory(
            base=self.base,
            discriminator=self.discriminator,
            variants=(*kept, (tag, cls)),
        )

    def resolve(self, record: RawRecord) -> type[E]:
        """Pick the entity class for a record."""
        if self.discriminator is None:
            return self.base
        tag = record.get(self.discriminator)
        if tag is None or tag == "":
            return self.base
        for known, cls in self.variants:
            if known == tag:
                return cls
        raise HydrationFailure(f"Unknown {self.discriminator} {tag!r} for {self.base.__name__}")

    def hydrate(self, record: RawRecord) -> E:
        cls = self.resolve(record)
        if cls.key_field not in record:
            raise HydrationFailure(f"Record has no {cls.key_field!r} field")
        return cls(record)

    def serialize(self, entity: E) -> RawRecord:
        return entity_data(entity)


def factory[E: Entity](base: type[E]) -> Factory[E]:
    """Create a factory hydrating every record as `base`."""
    return Factory(base=base)


__all__ = ("Factory", "factory")
