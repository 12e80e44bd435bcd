"""
Found-row counting.

Counts are only defined for queries the loader built itself, or for raw
queries that asked for one (`SELECT SQL_CALC_FOUND_ROWS ...`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from hoard._types import LogicError
from hoard.query._descriptor import Query, count_query

if TYPE_CHECKING:
    from hoard.store import Store

logger = logging.getLogger(__name__)


class Provenance(Enum):
    """Where the last executed query came from."""

    UNSET = auto()
    BUILDER = auto()
    RAW = auto()


@dataclass(slots=True)
class FoundRows:
    """
    Per-session count state.

    Note: Mutable by design of its owner (one Session, one query at a time).
    Cleared by Session.reset().
    """

    provenance: Provenance = Provenance.UNSET
    raw_hinted: bool = False
    value: int | None = None

    def mark_builder(self) -> None:
        self.provenance = Provenance.BUILDER
        self.raw_hinted = False
        self.value = None

    def mark_raw(self, hinted: bool) -> None:
        self.provenance = Provenance.RAW
        self.raw_hinted = hinted
        self.value = None

    def remember(self, value: int) -> None:
        logger.debug("found rows: %d", value)
        self.value = value

    def forget(self) -> None:
        """Drop the remembered count, keep provenance."""
        self.value = None

    def clear(self) -> None:
        self.provenance = Provenance.UNSET
        self.raw_hinted = False
        self.value = None

    @property
    def countable(self) -> bool:
        return self.provenance is not Provenance.RAW or self.raw_hinted

    async def resolve(self, store: Store, query: Query, *, fast: bool = False) -> int:
        """
        Total matches before pagination.

        Args:
            store: backing store
            query: the scope's query; only its filters are used
            fast: read the store's last found-row count instead of counting again

        Raises:
            LogicError: the last query was raw and did not opt into counting
        """
        if self.value is not None:
            return self.value
        if not self.countable:
            raise LogicError("Can not count found objects for the last query")

        if fast:
            total = await store.found_rows()
        else:
            total = await store.count(count_query(query))
        self.remember(total)
        return total


__all__ = ("Provenance", "FoundRows")
