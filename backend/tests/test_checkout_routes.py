# Overview: Pytest coverage for checkout and catalog HTTP routes.

from tillpoint.models import Product, Sale


def _payload(store, product_a, product_b, **extra):
    body = {
        "store_id": store.id,
        "lines": [
            {"product_id": product_a.id, "quantity": 2},
            {"product_id": product_b.id, "quantity": 1},
        ],
        "applied_discount_ids": [],
        "payment_method": "cash",
    }
    body.update(extra)
    return body


class TestQuoteRoute:

    def test_quote(self, client, staff_headers, store, product_a, product_b):
        response = client.post("/api/checkout/quote", json=_payload(store, product_a, product_b), headers=staff_headers)

        assert response.status_code == 200
        pricing = response.get_json()["pricing"]
        assert pricing["subtotal"] == "25.00"
        assert pricing["tax_amount"] == "2.00"
        assert pricing["total"] == "27.00"

    def test_quote_requires_staff(self, client, store, product_a, product_b):
        response = client.post("/api/checkout/quote", json=_payload(store, product_a, product_b))
        assert response.status_code == 401
        assert response.get_json()["code"] == "unauthenticated"

    def test_quote_rejects_missing_store(self, client, staff_headers, db_session):
        response = client.post("/api/checkout/quote", json={"lines": []}, headers=staff_headers)
        assert response.status_code == 400
        assert response.get_json()["code"] == "invalid_request"

    def test_quote_empty_cart(self, client, staff_headers, store):
        response = client.post("/api/checkout/quote", json={"store_id": store.id, "lines": []}, headers=staff_headers)
        assert response.status_code == 400
        assert response.get_json()["code"] == "empty_cart"

    def test_quote_duplicate_discount(self, client, staff_headers, store, product_a, product_b, percent_off):
        body = _payload(store, product_a, product_b, applied_discount_ids=[percent_off.id, percent_off.id])
        response = client.post("/api/checkout/quote", json=body, headers=staff_headers)

        assert response.status_code == 409
        assert response.get_json()["code"] == "already_applied"

    def test_quote_minimum_not_met(self, client, staff_headers, store, product_a, product_b, five_off_over_fifty):
        body = _payload(store, product_a, product_b, applied_discount_ids=[five_off_over_fifty.id])
        response = client.post("/api/checkout/quote", json=body, headers=staff_headers)

        assert response.status_code == 409
        data = response.get_json()
        assert data["code"] == "minimum_not_met"
        assert data["details"]["min_order_amount"] == "50.00"


class TestCommitRoute:

    def test_commit(self, client, staff_headers, db_session, store, product_a, product_b, customer):
        body = _payload(store, product_a, product_b, customer_id=customer.id)
        response = client.post("/api/checkout/commit", json=body, headers=staff_headers)

        assert response.status_code == 201
        data = response.get_json()
        assert data["total"] == "27.00"
        assert data["receipt_number"].startswith(f"RCP-{store.id:03d}-")

        sale = db_session.get(Sale, data["sale_id"])
        assert sale.staff_id == staff_headers["X-Staff-Id"]
        assert sale.customer_id == customer.id

    def test_commit_requires_payment_method(self, client, staff_headers, store, product_a, product_b):
        body = _payload(store, product_a, product_b)
        del body["payment_method"]
        response = client.post("/api/checkout/commit", json=body, headers=staff_headers)
        assert response.status_code == 400

    def test_commit_insufficient_stock(self, client, staff_headers, db_session, store, product_a, product_b):
        product_a.stock_quantity = 1
        db_session.commit()

        response = client.post("/api/checkout/commit", json=_payload(store, product_a, product_b), headers=staff_headers)

        assert response.status_code == 409
        assert response.get_json()["code"] == "insufficient_stock"
        assert db_session.get(Product, product_a.id).stock_quantity == 1

    def test_commit_unknown_product(self, client, staff_headers, store):
        body = {"store_id": store.id, "lines": [{"product_id": 424242, "quantity": 1}], "payment_method": "cash"}
        response = client.post("/api/checkout/commit", json=body, headers=staff_headers)

        assert response.status_code == 400
        assert response.get_json()["code"] == "invalid_reference"

    def test_commit_idempotency_key(self, client, staff_headers, db_session, store, product_a, product_b):
        body = _payload(store, product_a, product_b, idempotency_key="till-7-0001")
        first = client.post("/api/checkout/commit", json=body, headers=staff_headers)
        second = client.post("/api/checkout/commit", json=body, headers=staff_headers)

        assert first.status_code == 201
        assert second.status_code == 201
        assert first.get_json()["sale_id"] == second.get_json()["sale_id"]
        assert db_session.query(Sale).count() == 1

    def test_get_sale(self, client, staff_headers, store, product_a, product_b, percent_off):
        body = _payload(store, product_a, product_b, applied_discount_ids=[percent_off.id])
        sale_id = client.post("/api/checkout/commit", json=body, headers=staff_headers).get_json()["sale_id"]

        response = client.get(f"/api/checkout/sales/{sale_id}", headers=staff_headers)
        assert response.status_code == 200
        data = response.get_json()
        assert len(data["items"]) == 2
        assert data["discounts"][0]["amount"] == "2.50"

        assert client.get("/api/checkout/sales/999999", headers=staff_headers).status_code == 404


class TestCatalogRoutes:

    def test_barcode_lookup(self, client, staff_headers, store, product_a):
        response = client.get(f"/api/products/barcode/0000000000017?store_id={store.id}", headers=staff_headers)
        assert response.status_code == 200
        assert response.get_json()["product"]["id"] == product_a.id

        missing = client.get(f"/api/products/barcode/123?store_id={store.id}", headers=staff_headers)
        assert missing.status_code == 404

    def test_product_search(self, client, staff_headers, store, product_a, product_b):
        response = client.get(f"/api/products?store_id={store.id}&q=PROD-B", headers=staff_headers)
        assert response.status_code == 200
        assert [p["id"] for p in response.get_json()["items"]] == [product_b.id]

    def test_store_id_required(self, client, staff_headers, db_session):
        assert client.get("/api/products", headers=staff_headers).status_code == 400
        assert client.get("/api/discounts", headers=staff_headers).status_code == 400

    def test_discounts(self, client, staff_headers, store, percent_off):
        response = client.get(f"/api/discounts?store_id={store.id}", headers=staff_headers)
        assert response.status_code == 200
        assert response.get_json()["count"] == 1

    def test_health(self, client, db_session):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"
