import asyncio

from fastapi.testclient import TestClient

from catalog_api.api.main import create_app
from catalog_api.core.store.base import StoreError


def test_default_list_envelope(client):
    r = client.get("/api/v1/products")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["count"] == 5
    assert body["pagination"] == {}
    # default sort is newest first
    assert [p["id"] for p in body["data"]] == ["p5", "p4", "p3", "p2", "p1"]


def test_count_is_page_size_not_total(client):
    r = client.get("/api/v1/products?limit=2&page=2&sort=price")
    body = r.json()
    assert body["count"] == 2
    # by price: p2, p1 | p3, p4 | p5
    assert [p["id"] for p in body["data"]] == ["p3", "p4"]
    assert body["pagination"] == {
        "next": {"page": 3, "limit": 2},
        "prev": {"page": 1, "limit": 2},
    }


def test_pagination_keys_omitted_not_null(client):
    body = client.get("/api/v1/products?limit=5").json()
    assert "next" not in body["pagination"]
    assert "prev" not in body["pagination"]


def test_bracket_range_filter(client):
    r = client.get("/api/v1/products", params={"price[gte]": "10", "price[lte]": "50", "sort": "price"})
    assert [p["id"] for p in r.json()["data"]] == ["p1", "p3", "p4"]


def test_value_operator_filter(client):
    r = client.get("/api/v1/products", params={"price": "gt:100"})
    assert [p["id"] for p in r.json()["data"]] == ["p5"]


def test_in_filter(client):
    r = client.get("/api/v1/products", params={"name[in]": "Go,Chess", "sort": "name"})
    assert [p["name"] for p in r.json()["data"]] == ["Chess", "Go"]


def test_select_and_forward_populate(client):
    r = client.get("/api/v1/products", params={"select": "name", "name": "Dune"})
    doc = r.json()["data"][0]
    assert set(doc.keys()) == {"id", "name", "category"}
    assert doc["category"]["name"] == "Books"


def test_categories_populate_products(client):
    r = client.get("/api/v1/categories", params={"sort": "name"})
    data = r.json()["data"]
    assert [c["name"] for c in data] == ["Books", "Games", "Music"]
    assert [p["id"] for p in data[0]["products"]] == ["p1", "p2"]


def test_populate_is_not_caller_configurable(client):
    # "populate" is an ordinary field filter; nothing matches
    r = client.get("/api/v1/products", params={"populate": "category"})
    assert r.status_code == 200
    assert r.json()["count"] == 0


def test_nested_category_products_scoped_by_path(client):
    r = client.get("/api/v1/categories/c2/products", params={"category": "c1", "sort": "price"})
    assert r.status_code == 200
    assert [p["id"] for p in r.json()["data"]] == ["p3", "p4"]


def test_invalid_pagination_is_400(client):
    for q in ("page=0", "page=abc", "limit=-5", "limit=1000"):
        r = client.get(f"/api/v1/products?{q}")
        assert r.status_code == 400, q
        assert r.json()["error"]["kind"] == "invalid_pagination"


def test_unknown_operator_is_400(client):
    r = client.get("/api/v1/products", params={"price[regex]": "1"})
    assert r.status_code == 400
    assert r.json()["error"]["kind"] == "invalid_operator"


def test_incomparable_filter_is_client_caused_query_error(client):
    r = client.get("/api/v1/products", params={"price[gt]": "cheap"})
    assert r.status_code == 400
    assert r.json()["error"]["kind"] == "query_execution_error"


def test_store_failure_is_500_without_details(settings, database, identity_store, monkeypatch):
    products = database.collection("products")

    async def broken_find(*args, **kwargs):
        raise StoreError("connection reset by db-host-17")

    monkeypatch.setattr(products, "find", broken_find)
    c = TestClient(create_app(settings, database, identity_store))

    r = c.get("/api/v1/products")
    assert r.status_code == 500
    body = r.json()
    assert body["success"] is False
    assert body["error"]["kind"] == "query_execution_error"
    assert "db-host-17" not in r.text


def test_store_timeout_is_query_execution_error(settings, database, identity_store, monkeypatch):
    products = database.collection("products")

    async def slow_count(*args, **kwargs):
        raise asyncio.TimeoutError()

    monkeypatch.setattr(products, "count", slow_count)
    c = TestClient(create_app(settings, database, identity_store))

    r = c.get("/api/v1/products")
    assert r.status_code == 500
    assert r.json()["error"]["kind"] == "query_execution_error"


def test_page_size_defaults_follow_settings(database, identity_store):
    from catalog_api.config import Settings

    c = TestClient(create_app(Settings(jwt_secret="x", default_page_limit=2, max_page_limit=3), database, identity_store))
    body = c.get("/api/v1/products").json()
    assert body["count"] == 2
    assert body["pagination"] == {"next": {"page": 2, "limit": 2}}
    assert c.get("/api/v1/products?limit=4").status_code == 400


def test_numeric_looking_name_matches_exactly(client, admin_headers):
    r = client.post("/api/v1/categories", json={"name": "007"}, headers=admin_headers)
    assert r.status_code == 201, r.text

    body = client.get("/api/v1/categories", params={"name": "007"}).json()
    assert body["count"] == 1
    assert body["data"][0]["name"] == "007"
    assert client.get("/api/v1/categories", params={"name": "7"}).json()["count"] == 0


def test_bracketed_page_key_is_rejected(client):
    r = client.get("/api/v1/products", params={"page[gt]": "1"})
    assert r.status_code == 400
    assert r.json()["error"]["kind"] == "invalid_pagination"

    r = client.get("/api/v1/products", params={"sort[in]": "price"})
    assert r.status_code == 400
    assert r.json()["error"]["kind"] == "invalid_operator"


class _FailingCountStore:
    """count fails once find has started; find waits until cancelled."""

    name = "things"

    def __init__(self):
        self.find_cancelled = False
        self.populate_seen = None
        self._find_started = None

    async def count(self, filter):
        await self._find_started.wait()
        raise StoreError("count failed")

    async def find(self, filter, *, sort=(), select=None, skip=0, limit=25, populate=None):
        self.populate_seen = populate
        self._find_started.set()
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            self.find_cancelled = True
            raise
        return []


def test_failed_count_cancels_pending_find():
    from catalog_api.api.advanced_results import _count_and_find
    from catalog_api.api.schemas import CATEGORY_PRODUCTS
    from catalog_api.core.query.models import QueryDescriptor

    store = _FailingCountStore()

    async def scenario():
        store._find_started = asyncio.Event()
        try:
            await _count_and_find(store, QueryDescriptor(populate=CATEGORY_PRODUCTS))
        except StoreError:
            pass
        else:
            raise AssertionError("count failure was not raised")
        for _ in range(3):
            await asyncio.sleep(0)

    asyncio.run(scenario())
    assert store.find_cancelled is True
    assert store.populate_seen is CATEGORY_PRODUCTS


def test_route_populate_travels_on_the_descriptor(settings, database, identity_store, monkeypatch):
    from catalog_api.api.schemas import PRODUCT_CATEGORY

    products = database.collection("products")
    seen = {}
    original_find = products.find

    async def recording_find(filter, **kwargs):
        seen["populate"] = kwargs.get("populate")
        return await original_find(filter, **kwargs)

    monkeypatch.setattr(products, "find", recording_find)
    c = TestClient(create_app(settings, database, identity_store))

    assert c.get("/api/v1/products").status_code == 200
    assert seen["populate"] == PRODUCT_CATEGORY
