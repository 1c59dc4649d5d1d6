import pytest

from fluxcart.domain.errors import NotFoundError
from fluxcart.services.catalog_service import CatalogService


class RankingSearch:
    def __init__(self, ids, total=None):
        self.ids = ids
        self.total = total if total is not None else len(ids)
        self.calls = []

    def search(self, q, limit, offset, category=None):
        self.calls.append((q, limit, offset, category))
        return self.ids, self.total


class BrokenSearch:
    def search(self, q, limit, offset, category=None):
        raise ConnectionError("meili down")


def test_search_uses_engine_ranking(db, make_product):
    a = make_product(title="Red Chair")
    b = make_product(title="Blue Chair")
    engine = RankingSearch([b.id, a.id], total=40)

    items, total = CatalogService(db, engine).search("chair", limit=2)

    assert [p.id for p in items] == [b.id, a.id]
    assert total == 40
    assert engine.calls == [("chair", 2, 0, None)]


def test_search_falls_back_to_database(db, make_product):
    make_product(title="Red Chair")
    make_product(title="Table", description="Oak table")

    items, total = CatalogService(db, BrokenSearch()).search("chair")

    assert [p.title for p in items] == ["Red Chair"]
    assert total == 1


def test_empty_query_lists_newest_first(db, make_product):
    first = make_product()
    second = make_product()
    engine = RankingSearch([first.id])

    items, total = CatalogService(db, engine).search("")

    assert [p.id for p in items] == [second.id, first.id]
    assert total == 2
    assert engine.calls == []


def test_category_filter(db, make_product):
    make_product(title="Sofa", category="furniture")
    make_product(title="Drill", category="tools")

    items, total = CatalogService(db).search("", category="tools")
    assert [p.title for p in items] == ["Drill"]
    assert total == 1


def test_get_by_slug(db, make_product):
    make_product(slug="oak-desk", title="Oak Desk")
    assert CatalogService(db).get_by_slug("oak-desk").title == "Oak Desk"
    with pytest.raises(NotFoundError):
        CatalogService(db).get_by_slug("missing")


def test_products_api(client, make_product):
    make_product(slug="lamp", title="Lamp", category="lighting")
    make_product(slug="sofa", title="Sofa", category="furniture")

    page = client.get("/products?q=lamp").json()
    assert page["total"] == 1
    assert page["items"][0]["slug"] == "lamp"

    assert client.get("/products/categories").json() == ["furniture", "lighting"]
    assert client.get("/products/sofa").json()["title"] == "Sofa"
    assert client.get("/products/nope").status_code == 404


def test_health_and_me(client):
    assert client.get("/health").json() == {"ok": True}
    me = client.get("/me", headers={"X-User-Id": "alice@example.com"}).json()
    assert me["email"] == "alice@example.com"
    assert me["name"] == "alice"
