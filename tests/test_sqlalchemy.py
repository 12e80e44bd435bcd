"""Tests for the SQLAlchemy store, against SQLite through aiosqlite."""

from pathlib import Path

import pytest
from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from hoard import loader as L
from hoard.cache import MemoryPool
from hoard.loader import Loader, Options
from hoard.query import Query, RawQuery, many_query
from hoard.scope import Scope, order_by, where
from hoard.store import SQLAlchemyStore, StoreError, compile_count, compile_raw, compile_select
from tests.conftest import ARTICLES, Article, ids

metadata = MetaData()

articles_table = Table(
    "articles",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("title", String),
    Column("position", Integer),
    Column("section", String, nullable=True),
    Column("active", Boolean),
)


async def create_store(tmp_path: Path) -> tuple[AsyncEngine, SQLAlchemyStore]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hoard.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        await conn.execute(articles_table.insert(), ARTICLES)
    return engine, SQLAlchemyStore(async_sessionmaker(engine), metadata)


def articles_loader(store: SQLAlchemyStore) -> Loader[Article]:
    return L.loader(Article, source="articles").store(store).cache(MemoryPool()).build()


class TestCompile:
    @pytest.mark.unit
    def test_select_with_value_order(self) -> None:
        query = many_query(Scope.create(orders=[order_by("position")]), "articles", "id", [3, 1])
        sql = str(compile_select(articles_table, query))
        assert "CASE" in sql
        assert "IN" in sql
        assert "LIMIT" in sql

    @pytest.mark.unit
    def test_count_ignores_orders(self) -> None:
        query = Query(source="articles", filters=(where("active", "=", True),), orders=(order_by("id"),))
        sql = str(compile_count(articles_table, query))
        assert "count" in sql.lower()
        assert "ORDER BY" not in sql

    @pytest.mark.unit
    def test_raw_positional_binds(self) -> None:
        stmt, params = compile_raw(RawQuery("SELECT * FROM articles WHERE id = :p0", binds=(2,)))
        assert params == {"p0": 2}
        assert ":p0" in str(stmt)

    @pytest.mark.unit
    def test_raw_named_binds_with_types(self) -> None:
        stmt, params = compile_raw(
            RawQuery("SELECT * FROM articles WHERE id = :id", binds={"id": 2}, types={"id": Integer()})
        )
        assert params == {"id": 2}
        assert isinstance(stmt.compile().binds["id"].type, Integer)

    @pytest.mark.unit
    def test_unknown_source(self) -> None:
        store = SQLAlchemyStore(async_sessionmaker(), metadata)
        with pytest.raises(StoreError):
            store.table("videos")


class TestSQLAlchemyStore:
    @pytest.mark.asyncio
    async def test_load_many_keeps_request_order(self, tmp_path: Path) -> None:
        engine, store = await create_store(tmp_path)
        try:
            articles = articles_loader(store)
            await articles.get(2)
            result = await articles.get_many([3, 1, 2, 99])
            assert ids(result) == [3, 1, 2]
            assert result[0]["title"] == "Three"
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_cursor_many(self, tmp_path: Path) -> None:
        engine, store = await create_store(tmp_path)
        try:
            articles = articles_loader(store)
            await articles.get(4)
            async with articles.session().cursor_many([5, 4, 1]) as cursor:
                assert [a.id async for a in cursor] == [5, 4, 1]
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_paginated_load_and_count(self, tmp_path: Path) -> None:
        engine, store = await create_store(tmp_path)
        try:
            session = (
                articles_loader(store)
                .session()
                .add_filter(where("active", "=", True))
                .set_orders([order_by("position", "desc")])
                .set_pagination((2, 2))
            )
            assert ids(await session.load()) == [2, 1]
            assert await session.total_matches() == 4
            assert await session.total_matches(fast=False) == 4
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_fast_count_without_pagination(self, tmp_path: Path) -> None:
        engine, store = await create_store(tmp_path)
        try:
            articles = (
                L.loader(Article, source="articles")
                .store(store)
                .options(Options().with_fast_count())
                .build()
            )
            session = articles.session().add_filter(where("active", "=", True))
            loaded = await session.load_all()
            assert len(loaded) == 4
            assert await session.total_matches() == len(loaded)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_fast_count_after_early_close(self, tmp_path: Path) -> None:
        engine, store = await create_store(tmp_path)
        try:
            session = articles_loader(store).session().set_orders([order_by("id")])
            first = await session.cursor().first()
            assert first is not None and first.id == 1
            assert await session.total_matches(fast=True) == 5
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_null_filters(self, tmp_path: Path) -> None:
        engine, store = await create_store(tmp_path)
        try:
            session = articles_loader(store).session().add_filter(where("section", "IS NULL"))
            assert ids(await session.load()) == [4]
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_early_close(self, tmp_path: Path) -> None:
        engine, store = await create_store(tmp_path)
        try:
            session = articles_loader(store).session().set_orders([order_by("id")])
            first = await session.cursor().first()
            assert first is not None and first.id == 1
            assert len(await session.load_all()) == 5
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_raw_query(self, tmp_path: Path) -> None:
        engine, store = await create_store(tmp_path)
        try:
            articles = articles_loader(store)
            result = await articles.session().load_from_query(
                ("SELECT * FROM articles WHERE id IN (:p0, :p1) ORDER BY id DESC", [2, 3])
            )
            assert ids(result) == [3, 2]
            assert await articles.is_cached(3)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_found_rows_hint_needs_mysql(self, tmp_path: Path) -> None:
        engine, store = await create_store(tmp_path)
        try:
            session = articles_loader(store).session()
            with pytest.raises(StoreError):
                await session.load_from_query("SELECT SQL_CALC_FOUND_ROWS * FROM articles")
        finally:
            await engine.dispose()
