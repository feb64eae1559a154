"""Tests for the document stores (in-memory and SQLAlchemy backed)."""

import pytest

from billdesk.database import (
    MEMORY_URL,
    DocumentStore,
    MemoryDocumentStore,
    SqlDocumentStore,
    build_store,
    decode,
)
from billdesk.errors import PersistenceError
from billdesk.stock.products.schemas import Product

pytestmark = pytest.mark.anyio


@pytest.fixture(params=["memory", "sqlite"])
def doc_store(request, tmp_path):
    if request.param == "memory":
        yield MemoryDocumentStore()
    else:
        store = SqlDocumentStore(f"sqlite:///{tmp_path}/documents.db")
        yield store
        store.close()


async def seed_bills(store):
    await store.set("bills", "b1", {"billId": "b1", "total": 50.0, "isReturn": False, "date": "2024-01-02"})
    await store.set("bills", "b2", {"billId": "b2", "total": 120.0, "isReturn": False, "date": "2024-01-01"})
    await store.set("bills", "b3", {"billId": "b3", "total": -20.0, "isReturn": True, "date": "2024-01-03"})


class TestDocumentStore:

    async def test_set_then_get(self, doc_store):
        await doc_store.set("products", "p1", {"name": "Pen", "quantity": 3})

        assert await doc_store.get("products", "p1") == {"name": "Pen", "quantity": 3}
        assert await doc_store.get("products", "missing") is None
        assert await doc_store.get("bills", "p1") is None

    async def test_set_overwrites(self, doc_store):
        await doc_store.set("products", "p1", {"name": "Pen", "quantity": 3})
        await doc_store.set("products", "p1", {"name": "Pencil"})

        assert await doc_store.get("products", "p1") == {"name": "Pencil"}

    async def test_update_merges(self, doc_store):
        await doc_store.set("products", "p1", {"name": "Pen", "quantity": 3})
        await doc_store.update("products", "p1", {"quantity": 0})

        assert await doc_store.get("products", "p1") == {"name": "Pen", "quantity": 0}

    async def test_update_missing_document(self, doc_store):
        with pytest.raises(PersistenceError):
            await doc_store.update("products", "ghost", {"quantity": 1})

    async def test_returned_documents_are_copies(self, doc_store):
        await doc_store.set("products", "p1", {"name": "Pen", "tags": ["a"]})

        doc = await doc_store.get("products", "p1")
        doc["tags"].append("b")

        assert await doc_store.get("products", "p1") == {"name": "Pen", "tags": ["a"]}

    async def test_delete(self, doc_store):
        await doc_store.set("products", "p1", {"name": "Pen"})

        assert await doc_store.delete("products", "p1") is True
        assert await doc_store.delete("products", "p1") is False
        assert await doc_store.get("products", "p1") is None

    async def test_query_filters(self, doc_store):
        await seed_bills(doc_store)

        returns = await doc_store.query("bills", [("isReturn", "==", True)])
        assert [d["billId"] for d in returns] == ["b3"]

        big = await doc_store.query("bills", [("total", ">=", 50.0), ("isReturn", "!=", True)], order_by="total")
        assert [d["billId"] for d in big] == ["b1", "b2"]

        chosen = await doc_store.query("bills", [("billId", "in", ["b1", "b3"])], order_by="billId")
        assert [d["billId"] for d in chosen] == ["b1", "b3"]

    async def test_query_order_and_limit(self, doc_store):
        await seed_bills(doc_store)

        latest = await doc_store.query("bills", order_by="date", descending=True, limit=2)

        assert [d["billId"] for d in latest] == ["b3", "b1"]

    async def test_query_empty_collection(self, doc_store):
        assert await doc_store.query("nothing-here") == []

    async def test_unknown_operator(self, doc_store):
        await seed_bills(doc_store)

        with pytest.raises(ValueError):
            await doc_store.query("bills", [("total", "~", 1)])


class TestHelpers:

    def test_build_store(self, tmp_path):
        assert isinstance(build_store(MEMORY_URL), MemoryDocumentStore)

        store = build_store(f"sqlite:///{tmp_path}/other.db")
        assert isinstance(store, SqlDocumentStore)
        store.close()

    def test_decode_malformed(self):
        with pytest.raises(PersistenceError):
            decode(Product, {"productCode": "A1"}, "products")

    def test_incomplete_store_cannot_be_created(self):
        class ReadOnlyStore(DocumentStore):
            async def get(self, collection, doc_id):
                return None

        with pytest.raises(TypeError):
            ReadOnlyStore()
