"""HTTP level tests: routes, camelCase payloads and error status codes."""

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from billdesk.database import MemoryDocumentStore
from billdesk.main import create_app
from billdesk.reports.router import XLSX
from billdesk.reports.service import to_excel


@pytest.fixture
def client():
    with TestClient(create_app(MemoryDocumentStore())) as c:
        yield c


def create_product(client, code, quantity=5, price=100.0, name=None):
    response = client.post(
        "/stock/products/",
        json={
            "productCode": code,
            "name": name or f"Product {code}",
            "sellingPrice": price,
            "category": {"name": "Electronics", "subCategories": ["Audio Systems"]},
            "quantity": quantity,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def stocked(client):
    return {
        "A100": create_product(client, "A100", quantity=5, price=100.0, name="USB Cable"),
        "B200": create_product(client, "B200", quantity=1, price=50.0, name="Earphones"),
    }


def scan(client, code, terminal="T1"):
    return client.post(f"/sales/terminals/{terminal}/cart/scan", json={"productCode": code})


class TestProductsApi:

    def test_create_and_fetch(self, client):
        created = create_product(client, "A100")

        assert created["productCode"] == "A100"
        assert created["quantity"] == 5

        fetched = client.get(f"/stock/products/{created['productId']}")
        assert fetched.status_code == 200
        assert fetched.json()["name"] == "Product A100"

    def test_generated_code(self, client):
        response = client.post(
            "/stock/products/",
            json={"name": "Notebook", "sellingPrice": 40, "category": {"name": "Stationery"}},
        )

        code = response.json()["productCode"]
        assert len(code) == 12 and code.isdigit()

    def test_duplicate_code(self, client):
        create_product(client, "A100")

        response = client.post(
            "/stock/products/",
            json={"productCode": "A100", "name": "Other", "sellingPrice": 1, "category": {"name": "X"}},
        )
        assert response.status_code == 409

    def test_update_and_delete(self, client):
        created = create_product(client, "A100")
        pid = created["productId"]

        updated = client.put(f"/stock/products/{pid}", json={"sellingPrice": 120})
        assert updated.json()["sellingPrice"] == 120

        assert client.delete(f"/stock/products/{pid}").status_code == 200
        assert client.get(f"/stock/products/{pid}").status_code == 404

    def test_null_for_required_field_is_rejected(self, client):
        created = create_product(client, "A100")
        pid = created["productId"]

        response = client.put(f"/stock/products/{pid}", json={"name": None})

        assert response.status_code == 400
        assert "name" in response.json()["detail"]
        assert client.get(f"/stock/products/{pid}").json()["name"] == "Product A100"

    def test_null_clears_optional_field(self, client):
        pid = create_product(client, "A100")["productId"]
        client.put(f"/stock/products/{pid}", json={"size": "XL"})

        response = client.put(f"/stock/products/{pid}", json={"size": None})

        assert response.status_code == 200
        assert response.json()["size"] is None

    def test_list_filters_by_stock_status(self, client, stocked):
        create_product(client, "C300", quantity=0)

        out = client.get("/stock/products/", params={"stock_status": "out"}).json()
        assert [p["productCode"] for p in out] == ["C300"]

    def test_categories(self, client):
        categories = client.get("/stock/products/categories").json()

        assert len(categories) == 8
        assert {"category", "subcategory", "prefix"} <= set(categories[0])

    def test_excel_import(self, client):
        df = pd.DataFrame(
            [
                ["P-1", "Pen", "Stationery", "₹1,200.50", 3],
                ["P-2", "", "Stationery", 10, 1],
            ],
            columns=["product_code", "name", "category", "selling_price", "quantity"],
        )

        response = client.post(
            "/stock/products/import",
            files={"file": ("products.xlsx", to_excel(df, "Products"), XLSX)},
        )

        assert response.status_code == 200, response.text
        assert response.json() == {"message": "Import completed successfully", "imported": 1, "skipped": 1}

        pen = client.get("/stock/products/", params={"name": "P-1"}).json()[0]
        assert pen["sellingPrice"] == 1200.5

    def test_import_rejects_other_files(self, client):
        response = client.post(
            "/stock/products/import",
            files={"file": ("products.csv", b"name,category", "text/csv")},
        )
        assert response.status_code == 400


class TestCartApi:

    def test_scan_builds_cart(self, client, stocked):
        scan(client, "A100")
        body = scan(client, "A100").json()

        assert body["terminalId"] == "T1"
        assert body["items"][0]["productCode"] == "A100"
        assert body["items"][0]["quantity"] == 2
        assert body["items"][0]["totalPrice"] == 200
        assert body["totals"] == {"subtotal": 200, "tax": 36, "total": 236}

    def test_unknown_code(self, client, stocked):
        response = scan(client, "NOPE")
        assert response.status_code == 404

    def test_last_unit_conflict(self, client, stocked):
        scan(client, "B200")
        response = scan(client, "B200")

        assert response.status_code == 409
        assert "Only 1 available" in response.json()["detail"]

    def test_add_by_product_id(self, client, stocked):
        response = client.post(
            "/sales/terminals/T1/cart/items", json={"productId": stocked["A100"]["productId"]}
        )
        assert response.json()["items"][0]["productCode"] == "A100"

    def test_delta_warning(self, client, stocked):
        scan(client, "A100")

        body = client.patch("/sales/terminals/T1/cart/items/A100/delta", json={"delta": 10}).json()

        assert body["warning"] == "Cannot add more. Only 5 available in stock."
        assert body["items"][0]["quantity"] == 1

    def test_set_quantity_and_remove(self, client, stocked):
        scan(client, "A100")

        assert client.put("/sales/terminals/T1/cart/items/A100", json={"quantity": 3}).json()["totals"]["subtotal"] == 300
        assert client.put("/sales/terminals/T1/cart/items/A100", json={"quantity": 0}).status_code == 400

        body = client.delete("/sales/terminals/T1/cart/items/A100").json()
        assert body["items"] == []
        assert body["totals"]["total"] == 0

    def test_gst(self, client, stocked):
        scan(client, "A100")

        body = client.put("/sales/terminals/T1/cart/gst", json={"gstPercentage": 5}).json()
        assert body["gstPercentage"] == 5
        assert body["totals"]["total"] == 105

        assert client.put("/sales/terminals/T1/cart/gst", json={"gstPercentage": -1}).status_code == 400

    def test_offered_gst_rates(self, client):
        assert client.get("/sales/gst-rates").json() == [0, 5, 12, 18, 28]

    def test_terminals_are_independent(self, client, stocked):
        scan(client, "A100", terminal="T1")

        assert client.get("/sales/terminals/T2/cart").json()["items"] == []

        assert client.delete("/sales/terminals/T1").status_code == 204
        assert client.get("/sales/terminals/T1/cart").json()["items"] == []


class TestCheckoutApi:

    def checkout(self, client, **payload):
        return client.post("/sales/terminals/T1/checkout", json=payload)

    def test_checkout_and_return(self, client, stocked):
        scan(client, "A100")
        scan(client, "A100")
        scan(client, "B200")

        response = self.checkout(client, customerName="Asha", paymentMethod="upi")

        assert response.status_code == 201
        body = response.json()
        assert body["stockUpdated"] is True
        assert body["failedCodes"] == []
        bill = body["bill"]
        assert bill["total"] == 295
        assert bill["paymentMethod"] == "upi"
        assert bill["isReturn"] is False

        assert client.get(f"/stock/products/{stocked['A100']['productId']}").json()["quantity"] == 3
        assert client.get("/sales/terminals/T1/cart").json()["items"] == []

        ret = client.post(f"/sales/bills/{bill['billId']}/returns", json={"quantities": {"A100": 1}})

        assert ret.status_code == 201
        returned = ret.json()
        assert returned["isReturn"] is True
        assert returned["originalBillId"] == bill["billId"]
        assert returned["total"] == -118
        assert client.get(f"/stock/products/{stocked['A100']['productId']}").json()["quantity"] == 4

        again = client.post(f"/sales/bills/{returned['billId']}/returns", json={"quantities": {"A100": 1}})
        assert again.status_code == 400

        assert len(client.get("/sales/bills").json()) == 2
        assert len(client.get("/sales/bills", params={"is_return": True}).json()) == 1
        assert [b["billId"] for b in client.get(f"/sales/bills/{bill['billId']}/returns").json()] == [
            returned["billId"]
        ]

    def test_empty_cart(self, client, stocked):
        assert self.checkout(client).status_code == 400

    def test_return_validation(self, client, stocked):
        scan(client, "A100")
        bill_id = self.checkout(client).json()["bill"]["billId"]

        nothing = client.post(f"/sales/bills/{bill_id}/returns", json={"quantities": {"A100": 0}})
        too_many = client.post(f"/sales/bills/{bill_id}/returns", json={"quantities": {"A100": 2}})

        assert nothing.status_code == 400
        assert nothing.json()["detail"] == "Please select items to return"
        assert too_many.status_code == 400

    def test_unknown_bill(self, client):
        assert client.get("/sales/bills/BILL-0").status_code == 404
        assert client.post("/sales/bills/BILL-0/returns", json={"quantities": {"A": 1}}).status_code == 404


class TestBackOfficeApi:

    def test_credit_ledger(self, client):
        party = client.post(
            "/credit/parties", json={"name": "Kumar Stores", "phone": "98450", "initialBalance": 100}
        ).json()
        assert party["balance"] == 100

        tx = client.post(
            f"/credit/parties/{party['id']}/transactions", json={"type": "DEBIT", "amount": 40}
        )
        assert tx.status_code == 201

        assert client.get(f"/credit/parties/{party['id']}").json()["balance"] == 60
        assert len(client.get(f"/credit/parties/{party['id']}/transactions").json()) == 1
        assert client.get("/credit/summary").json()["totalBalance"] == 60
        assert client.get("/credit/parties/nope").status_code == 404

    def test_staff(self, client):
        created = client.post(
            "/staff/", json={"firstName": "Priya", "lastName": "N", "email": "priya@shop.in", "phone": "900"}
        ).json()
        assert created["role"] == "cashier"

        updated = client.put(f"/staff/{created['id']}", json={"role": "manager"}).json()
        assert updated["role"] == "manager"

        assert [s["id"] for s in client.get("/staff/", params={"role": "manager"}).json()] == [created["id"]]
        assert client.delete(f"/staff/{created['id']}").status_code == 200
        assert client.get(f"/staff/{created['id']}").status_code == 404

    def test_staff_null_email_is_rejected(self, client):
        created = client.post(
            "/staff/", json={"firstName": "Priya", "email": "priya@shop.in", "phone": "900"}
        ).json()

        response = client.put(f"/staff/{created['id']}", json={"email": None})

        assert response.status_code == 400
        assert client.get(f"/staff/{created['id']}").json()["email"] == "priya@shop.in"

    def test_inventory_adjustments(self, client, stocked):
        pid = stocked["A100"]["productId"]

        added = client.post(
            "/stock/inventory/adjustments",
            json={"productId": pid, "actionType": "add", "quantity": 3, "reason": "delivery"},
        ).json()
        assert (added["previousQuantity"], added["newQuantity"]) == (5, 8)

        too_many = client.post(
            "/stock/inventory/adjustments",
            json={"productId": pid, "actionType": "remove", "quantity": 20},
        )
        assert too_many.status_code == 400

        assert len(client.get("/stock/inventory/transactions", params={"product_id": pid}).json()) == 1
        overview = client.get("/stock/inventory/overview").json()
        assert overview["totalProducts"] == 2
        assert overview["lowStock"] == 2

    def test_reports(self, client, stocked):
        scan(client, "A100")
        client.post("/sales/terminals/T1/checkout", json={"paymentMethod": "cash"})

        summary = client.get("/reports/sales").json()
        assert summary["billCount"] == 1
        assert summary["grossSales"] == 118
        assert summary["byPaymentMethod"]["cash"] == 118

        low = client.get("/reports/low-stock").json()
        assert {p["productCode"] for p in low} == {"A100", "B200"}

        export = client.get("/reports/export/bills")
        assert export.status_code == 200
        assert export.headers["content-type"] == XLSX

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}
