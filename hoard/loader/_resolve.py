"""
Cache-augmented resolution — probe, partition, splice, write back.

    ids      [A, B, C, D]
    probe    hits {0: A, 2: C}   misses [B, D]
    store    one query: id IN (B, D) ORDER BY FIELD(id, B, D) LIMIT 2
    splice   [A, B, C, D]
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from hoard._types import HydrationFailure, Identifier
from hoard.cache import Pool
from hoard.entity import Hydrator
from hoard.keys import CacheKeys, is_valid_key

logger = logging.getLogger(__name__)


def normalize(identifier: Any) -> str:
    """Comparable form of an identifier: 7 and "7" name the same row."""
    return str(identifier)


def identity(entity: Any) -> Identifier | None:
    return getattr(entity, "id", None)


def unique(identifiers: Iterable[Identifier]) -> tuple[Identifier, ...]:
    """Drop repeated identifiers, keeping the first occurrence."""
    seen: set[str] = set()
    out: list[Identifier] = []
    for identifier in identifiers:
        key = normalize(identifier)
        if key not in seen:
            seen.add(key)
            out.append(identifier)
    return tuple(out)


# ═══════════════════════════════════════════════════════════════════════════════
# Partition
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Partition[E]:
    """
    Requested identifiers split into cache hits and misses.

    hits maps request position → entity; misses keep request order.
    """

    ids: tuple[Identifier, ...]
    hits: Mapping[int, E]
    misses: tuple[Identifier, ...]

    @classmethod
    def all_missing(cls, ids: Sequence[Identifier]) -> Partition[E]:
        return cls(ids=tuple(ids), hits={}, misses=tuple(ids))

    @property
    def complete(self) -> bool:
        return not self.misses

    def ordered_hits(self) -> list[E]:
        return [self.hits[pos] for pos in sorted(self.hits)]


async def read_cached[E](
    pool: Pool,
    keys: CacheKeys,
    hydrator: Hydrator[E],
    identifier: Identifier,
) -> E | None:
    """Hydrate a cached record, or None on a miss or unusable payload."""
    item = await pool.get(keys.key(identifier))
    if not item.hit or item.payload is None:
        return None
    try:
        return hydrator.hydrate(item.payload)
    except HydrationFailure as e:
        logger.debug("unusable cache entry %s: %s", item.key, e)
        return None


async def probe[E](
    pool: Pool,
    keys: CacheKeys,
    hydrator: Hydrator[E],
    ids: Sequence[Identifier],
) -> Partition[E]:
    """Look up every identifier independently."""
    hits: dict[int, E] = {}
    misses: list[Identifier] = []
    for position, identifier in enumerate(ids):
        entity = await read_cached(pool, keys, hydrator, identifier)
        if entity is None:
            misses.append(identifier)
        else:
            hits[position] = entity

    logger.debug(
        "cache probe %s (%s): %d hits, %d misses",
        keys.prefix, pool.name, len(hits), len(misses),
    )
    return Partition(ids=tuple(ids), hits=hits, misses=tuple(misses))


def splice[E](partition: Partition[E], fetched: Iterable[E]) -> list[E]:
    """
    Merge store results into the hits, in request order.

    Identifiers found nowhere are dropped; rows nobody asked for are ignored.
    """
    by_id = {normalize(identity(e)): e for e in fetched}
    out: list[E] = []
    for position, identifier in enumerate(partition.ids):
        if position in partition.hits:
            out.append(partition.hits[position])
            continue
        entity = by_id.get(normalize(identifier))
        if entity is not None:
            out.append(entity)
    return out


# ═══════════════════════════════════════════════════════════════════════════════
# Write Back
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class WriteBack[E]:
    """Pipeline hook storing each loaded entity's raw record in the pool."""

    pool: Pool
    keys: CacheKeys
    hydrator: Hydrator[E]

    async def __call__(self, entity: E) -> None:
        identifier = identity(entity)
        if not is_valid_key(identifier):
            logger.warning("not caching %r: invalid identifier %r", entity, identifier)
            return
        await self.pool.set(self.keys.key(identifier), self.hydrator.serialize(entity))  # type: ignore[arg-type]


__all__ = (
    "normalize",
    "identity",
    "unique",
    "Partition",
    "read_cached",
    "probe",
    "splice",
    "WriteBack",
)
