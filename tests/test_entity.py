"""Tests for entities and tagged-variant factories."""

import pytest

from hoard import HydrationFailure
from hoard import loader as L
from hoard.entity import Entity, entity_data, factory
from hoard.store import MemoryStore
from tests.conftest import Article, VideoArticle, ids


class Page(Entity):
    entity_type = "page"
    key_field = "slug"


class TestEntity:
    @pytest.mark.unit
    def test_access(self) -> None:
        article = Article({"id": 1, "title": "One"})
        assert article.id == 1
        assert article["title"] == "One"
        assert article.get("missing") is None
        assert article.has("title") and "title" in article
        assert not article.has("body")
        assert set(article) == {"id", "title"}

    @pytest.mark.unit
    def test_key_field(self) -> None:
        assert Page({"slug": "about", "id": 3}).id == "about"

    @pytest.mark.unit
    def test_data_is_a_copy(self) -> None:
        record = {"id": 1, "title": "One"}
        article = Article(record)
        record["title"] = "changed"
        article.data()["title"] = "changed"
        assert article["title"] == "One"

    @pytest.mark.unit
    def test_equality(self) -> None:
        assert Article({"id": 1}) == Article({"id": 1})
        assert Article({"id": 1}) != VideoArticle({"id": 1})
        assert Article({"id": 1}) != Article({"id": 1, "title": "x"})
        assert len({Article({"id": 1}), Article({"id": 1})}) == 1

    @pytest.mark.unit
    def test_entity_data(self) -> None:
        assert entity_data(Article({"id": 1})) == {"id": 1}
        assert entity_data({"id": 2}) == {"id": 2}
        with pytest.raises(TypeError):
            entity_data(42)


class TestFactory:
    @pytest.mark.unit
    def test_base(self) -> None:
        f = factory(Article)
        assert f.entity_type == "article"
        assert f.key_field == "id"
        assert type(f.hydrate({"id": 1})) is Article

    @pytest.mark.unit
    def test_variants(self) -> None:
        f = factory(Article).type_field("kind").variant("video", VideoArticle)
        assert type(f.hydrate({"id": 1, "kind": "video"})) is VideoArticle
        assert type(f.hydrate({"id": 2, "kind": None})) is Article
        assert type(f.hydrate({"id": 3})) is Article

    @pytest.mark.unit
    def test_unknown_tag(self) -> None:
        f = factory(Article).type_field("kind").variant("video", VideoArticle)
        with pytest.raises(HydrationFailure):
            f.hydrate({"id": 1, "kind": "podcast"})

    @pytest.mark.unit
    def test_missing_key_field(self) -> None:
        with pytest.raises(HydrationFailure):
            factory(Page).hydrate({"id": 1})

    @pytest.mark.unit
    def test_variant_must_subclass_base(self) -> None:
        with pytest.raises(TypeError):
            factory(Article).variant("page", Page)  # type: ignore[arg-type]

    @pytest.mark.unit
    def test_reregistering_a_tag_replaces_it(self) -> None:
        class Clip(Article):
            pass

        f = factory(Article).type_field("kind").variant("video", VideoArticle).variant("video", Clip)
        assert type(f.hydrate({"id": 1, "kind": "video"})) is Clip

    @pytest.mark.unit
    def test_serialize(self) -> None:
        assert factory(Article).serialize(Article({"id": 1, "title": "One"})) == {"id": 1, "title": "One"}


class TestVariantLoading:
    @pytest.mark.asyncio
    async def test_load_many_hydrates_variants(self) -> None:
        store = MemoryStore(
            {
                "content": [
                    {"id": 1, "kind": "article"},
                    {"id": 2, "kind": "video"},
                    {"id": 3, "kind": "podcast"},
                ]
            }
        )
        content = (
            L.loader(Article, source="content")
            .store(store)
            .type_field("kind")
            .variant("article", Article)
            .variant("video", VideoArticle)
            .build()
        )
        result = await content.get_many([2, 3, 1])
        assert ids(result) == [2, 1]
        assert [type(e) for e in result] == [VideoArticle, Article]
