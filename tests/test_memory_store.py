"""Tests for the in-memory store."""

import pytest

from hoard.query import Query, RawQuery
from hoard.scope import Filter, Operator, order_by, order_by_values, where
from hoard.store import MemoryStore, StoreError, matches
from tests.conftest import ARTICLES


async def fetch_ids(store: MemoryStore, query: Query) -> list[object]:
    return [row["id"] async for row in await store.fetch(query)]


class TestMatches:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("f", "expected"),
        [
            (where("section", "=", "news"), True),
            (where("section", "!=", "news"), False),
            (where("position", ">", 5), True),
            (where("position", "<=", 10), True),
            (where("position", "<", 10), False),
            (where("id", "IN", [1, 2]), True),
            (where("id", "NOT IN", [1, 2]), False),
            (where("title", "LIKE", "O%"), True),
            (where("title", "LIKE", "_ne"), True),
            (where("title", "LIKE", "o%"), False),
            (where("body", "IS NULL"), True),
            (where("title", "IS NOT NULL"), True),
        ],
    )
    def test_operators(self, f: Filter, expected: bool) -> None:
        assert matches(ARTICLES[0], f) is expected

    @pytest.mark.unit
    def test_null_never_equals(self) -> None:
        record = {"id": 4, "section": None}
        assert not matches(record, Filter("section", Operator.EQ, None))
        assert not matches(record, where("section", "!=", "news"))
        assert not matches(record, where("section", ">", "a"))

    @pytest.mark.unit
    def test_string_and_integer_identifiers_are_equal(self) -> None:
        record = {"id": 2, "active": True}
        assert matches(record, where("id", "=", "2"))
        assert matches(record, where("id", "IN", ["1", "2"]))
        assert not matches(record, where("id", "NOT IN", ["2"]))
        assert not matches(record, where("id", "!=", "2"))
        assert not matches(record, where("active", "=", "True"))

    @pytest.mark.unit
    def test_incomparable_types_do_not_match(self) -> None:
        assert not matches({"id": 1, "position": "ten"}, where("position", ">", 5))


class TestMemoryStore:
    @pytest.mark.asyncio
    async def test_filters_orders_and_pages(self) -> None:
        store = MemoryStore({"articles": ARTICLES})
        query = Query(
            source="articles",
            filters=(where("active", "=", True),),
            orders=(order_by("position", "desc"),),
            limit=2,
            offset=1,
        )
        assert await fetch_ids(store, query) == [4, 2]
        assert await store.found_rows() == 4

    @pytest.mark.asyncio
    async def test_value_list_order(self) -> None:
        store = MemoryStore({"articles": ARTICLES})
        query = Query(source="articles", orders=(order_by_values("id", [3, 1, 2]), order_by("position")))
        assert await fetch_ids(store, query) == [3, 1, 2, 4, 5]

    @pytest.mark.asyncio
    async def test_value_list_order_with_string_identifiers(self) -> None:
        store = MemoryStore({"articles": ARTICLES})
        query = Query(
            source="articles",
            filters=(where("id", "IN", ["3", "1"]),),
            orders=(order_by_values("id", ["3", "1"]),),
        )
        assert await fetch_ids(store, query) == [3, 1]

    @pytest.mark.asyncio
    async def test_nulls_sort_first_ascending(self) -> None:
        store = MemoryStore({"articles": ARTICLES})
        query = Query(source="articles", orders=(order_by("section"), order_by("id")))
        assert await fetch_ids(store, query) == [4, 1, 2, 5, 3]

    @pytest.mark.asyncio
    async def test_select_projection(self) -> None:
        store = MemoryStore({"articles": ARTICLES})
        rows = [r async for r in await store.fetch(Query(source="articles", select=("id",), limit=1))]
        assert rows == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_count_uses_filters_only(self) -> None:
        store = MemoryStore({"articles": ARTICLES})
        assert await store.count(Query(source="articles", filters=(where("section", "=", "news"),))) == 3
        assert len(store.counted) == 1

    @pytest.mark.asyncio
    async def test_records_are_copied(self) -> None:
        store = MemoryStore({"articles": ARTICLES})
        rows = [r async for r in await store.fetch(Query(source="articles"))]
        rows[0]["title"] = "changed"
        assert store.rows("articles")[0]["title"] == "One"
        assert ARTICLES[0]["title"] == "One"

    @pytest.mark.asyncio
    async def test_insert_and_remove(self) -> None:
        store = MemoryStore()
        store.insert("articles", {"id": 1})
        store.insert("articles", {"id": 2})
        assert store.remove("articles", "id", 1) == 1
        assert store.rows("articles") == [{"id": 2}]

    @pytest.mark.asyncio
    async def test_unknown_source(self) -> None:
        with pytest.raises(StoreError):
            await MemoryStore().fetch(Query(source="nope"))

    @pytest.mark.asyncio
    async def test_raw_without_handler(self) -> None:
        with pytest.raises(StoreError):
            await MemoryStore({"articles": ARTICLES}).fetch(RawQuery("SELECT * FROM articles"))

    @pytest.mark.asyncio
    async def test_raw_handler(self) -> None:
        seen: list[RawQuery] = []

        def handler(query: RawQuery):
            seen.append(query)
            return ARTICLES[:2]

        store = MemoryStore({"articles": ARTICLES}, raw=handler)
        raw = RawQuery("SELECT * FROM articles LIMIT :p0", binds=(2,))
        rows = [r async for r in await store.fetch(raw)]
        assert [r["id"] for r in rows] == [1, 2]
        assert seen == [raw]
        assert store.executed == [raw]
