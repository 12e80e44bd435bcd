"""
Entity — hydrated records and their factories.

    from hoard import entity as En

    class Article(En.Entity):
        entity_type = "article"

    articles = En.factory(Article)
"""

from __future__ import annotations

from hoard.entity._types import Entity, Hydrator, entity_data
from hoard.entity._factory import Factory, factory

__all__ = (
    "Entity",
    "Hydrator",
    "entity_data",
    "Factory",
    "factory",
)
