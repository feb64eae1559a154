"""Shared fixtures: an in-memory store with failure injection and a seeded catalog."""

import asyncio
import os
import tempfile

os.environ["DATABASE_URL"] = "memory://"
os.environ["LOG_FILE"] = os.path.join(tempfile.gettempdir(), "billdesk-tests.log")

import pytest  # noqa: E402

from billdesk.database import MemoryDocumentStore, encode  # noqa: E402
from billdesk.errors import PersistenceError  # noqa: E402
from billdesk.sales.schemas import Bill, BillItem, PaymentMethod  # noqa: E402
from billdesk.sales.terminal import Terminal  # noqa: E402
from billdesk.stock.products.schemas import Product, ProductCategory  # noqa: E402
from billdesk.stock.products.service import PRODUCTS  # noqa: E402


class ScriptedStore(MemoryDocumentStore):
    """Memory store that records every call and fails the ones listed in fail_on."""

    def __init__(self):
        super().__init__()
        # (method, collection, doc_id); doc_id None fails the whole collection
        self.fail_on = set()
        self.calls = []

    def _check(self, method, collection, doc_id=None):
        self.calls.append((method, collection, doc_id))
        if (method, collection, doc_id) in self.fail_on or (method, collection, None) in self.fail_on:
            raise PersistenceError(f"{method} failed for {collection}/{doc_id}")

    async def get(self, collection, doc_id):
        self._check("get", collection, doc_id)
        return await super().get(collection, doc_id)

    async def set(self, collection, doc_id, data):
        self._check("set", collection, doc_id)
        await super().set(collection, doc_id, data)

    async def update(self, collection, doc_id, partial):
        self._check("update", collection, doc_id)
        await super().update(collection, doc_id, partial)

    async def query(self, collection, filters=None, order_by=None, descending=False, limit=None):
        self._check("query", collection)
        return await super().query(collection, filters, order_by, descending, limit)

    def writes(self):
        return [c for c in self.calls if c[0] in ("set", "update")]


def make_product(code, quantity=5, price=100.0, name=None, category="Electronics"):
    return Product(
        product_id=f"id-{code}",
        product_code=code,
        name=name or f"Product {code}",
        selling_price=price,
        cost_price=price / 2,
        mrp_price=price * 1.2,
        category=ProductCategory(name=category, sub_categories=["Accessories"]),
        quantity=quantity,
        dealer_name="Acme Traders",
    )


def make_bill(items, gst=18.0, bill_id="BILL-1", is_return=False, original_bill_id=None):
    """items: list of (code, quantity, price)"""
    bill_items = [
        BillItem(
            product_code=code,
            product_name=f"Product {code}",
            quantity=qty,
            price=price,
            total_price=qty * price,
        )
        for code, qty, price in items
    ]
    subtotal = sum(i.total_price for i in bill_items)
    tax = round(subtotal * (18.0 if gst is None else gst) / 100, 2)
    return Bill(
        bill_id=bill_id,
        date="2024-03-01T10:00:00+05:30",
        items=bill_items,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
        gst_percentage=gst,
        payment_method=PaymentMethod.CASH,
        customer_name="Ravi",
        is_return=is_return,
        original_bill_id=original_bill_id,
    )


def seed(store, *products):
    for p in products:
        asyncio.run(store.set(PRODUCTS, p.product_id, encode(p)))


async def stock_of(store, code):
    doc = await MemoryDocumentStore.get(store, PRODUCTS, f"id-{code}")
    return doc["quantity"]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store():
    return ScriptedStore()


@pytest.fixture
def products():
    return [
        make_product("A100", quantity=5, price=100.0, name="USB Cable"),
        make_product("B200", quantity=1, price=50.0, name="Earphones"),
        make_product("C300", quantity=0, price=20.0, name="Screen Guard"),
    ]


@pytest.fixture
def seeded_store(store, products):
    seed(store, *products)
    return store


@pytest.fixture
def terminal(seeded_store):
    t = Terminal("T1", seeded_store, gst_percentage=18)
    asyncio.run(t.catalog.refresh())
    seeded_store.calls.clear()
    return t


@pytest.fixture
def catalog(terminal):
    return terminal.catalog


@pytest.fixture
def cart(terminal):
    return terminal.cart
