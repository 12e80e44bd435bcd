"""Shared fixtures for hoard tests."""

from collections.abc import AsyncIterator, Iterable

import pytest

from hoard import loader as L
from hoard.cache import MemoryPool
from hoard.entity import Entity
from hoard.loader import Loader
from hoard.store import MemoryStore


class Article(Entity):
    entity_type = "article"


class VideoArticle(Article):
    pass


ARTICLES = [
    {"id": 1, "title": "One", "position": 10, "section": "news", "active": True},
    {"id": 2, "title": "Two", "position": 20, "section": "news", "active": True},
    {"id": 3, "title": "Three", "position": 30, "section": "sports", "active": False},
    {"id": 4, "title": "Four", "position": 40, "section": None, "active": True},
    {"id": 5, "title": "Five", "position": 50, "section": "news", "active": True},
]


class Source:
    """Async iterator that records whether it was closed."""

    def __init__(self, items: Iterable[object]) -> None:
        self.items = list(items)
        self.closed = False

    def __aiter__(self) -> AsyncIterator[object]:
        return self

    async def __anext__(self) -> object:
        if not self.items:
            raise StopAsyncIteration
        return self.items.pop(0)

    async def aclose(self) -> None:
        self.closed = True


class SourceStore(MemoryStore):
    """MemoryStore whose row iterators are inspectable Sources."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.sources: list[Source] = []

    async def fetch(self, query):
        rows = await super().fetch(query)
        source = Source([row async for row in rows])
        self.sources.append(source)
        return source


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore({"articles": ARTICLES})


@pytest.fixture
def pool() -> MemoryPool:
    return MemoryPool()


@pytest.fixture
def articles(store: MemoryStore, pool: MemoryPool) -> Loader[Article]:
    return L.loader(Article, source="articles").store(store).cache(pool).build()


def ids(entities: Iterable[Entity]) -> list[object]:
    return [e.id for e in entities]
