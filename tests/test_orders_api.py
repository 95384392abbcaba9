import pytest


@pytest.fixture
def order_id(client):
    r = client.post("/api/orders")
    assert r.status_code == 201
    return r.json()["data"]["id"]


@pytest.fixture
def burger(make_product):
    return make_product(name="Burger", category="Lunch", price=10.0, description="")


class TestOrderFlow:
    def test_add_same_product_twice(self, client, order_id, burger):
        client.post(f"/api/orders/{order_id}/items", json={"product_id": burger["id"]})
        r = client.post(f"/api/orders/{order_id}/items", json={"product_id": burger["id"]})
        data = r.json()["data"]
        assert data["items"] == [
            {"id": burger["id"], "name": "Burger", "price": 10.0, "quantity": 2, "category": "Lunch", "line_total": 20.0}
        ]

    def test_percentage_tip_totals(self, client, order_id, burger):
        client.post(f"/api/orders/{order_id}/items", json={"product_id": burger["id"]})
        client.put(f"/api/orders/{order_id}/items/{burger['id']}", json={"quantity": 2})
        r = client.put(f"/api/orders/{order_id}/tip", json={"kind": "percentage", "value": 15})
        assert r.json()["data"]["totals"] == {
            "subtotal": 20.0,
            "tax_amount": 3.6,
            "amount_before_tip": 23.6,
            "tip_amount": 3.54,
            "total": 27.14,
        }

    def test_fixed_tip_after_full_discount(self, client, order_id, burger):
        client.post(f"/api/orders/{order_id}/items", json={"product_id": burger["id"]})
        client.post(f"/api/orders/{order_id}/items", json={"product_id": burger["id"]})
        client.put(f"/api/orders/{order_id}/discount", json={"amount": 25})
        r = client.put(f"/api/orders/{order_id}/tip", json={"kind": "amount", "value": 5})
        totals = r.json()["data"]["totals"]
        assert totals["amount_before_tip"] == 0
        assert totals["tip_amount"] == 5
        assert totals["total"] == 5

    def test_coupon_and_note(self, client, order_id, burger):
        client.post(f"/api/orders/{order_id}/items", json={"product_id": burger["id"]})
        client.put(f"/api/orders/{order_id}/coupon", json={"amount": 1.8, "code": "welcome"})
        r = client.put(f"/api/orders/{order_id}/note", json={"note": "table 4"})
        data = r.json()["data"]
        assert data["discounts"]["coupon_code"] == "WELCOME"
        assert data["note"] == "table 4"
        assert data["totals"]["amount_before_tip"] == pytest.approx(10.0)

    def test_quantity_zero_removes_line(self, client, order_id, burger):
        client.post(f"/api/orders/{order_id}/items", json={"product_id": burger["id"]})
        r = client.put(f"/api/orders/{order_id}/items/{burger['id']}", json={"quantity": 0})
        assert r.json()["data"]["items"] == []

    def test_remove_and_clear(self, client, order_id, burger):
        client.post(f"/api/orders/{order_id}/items", json={"product_id": burger["id"]})
        client.put(f"/api/orders/{order_id}/tip", json={"kind": "amount", "value": 3})
        r = client.post(f"/api/orders/{order_id}/clear")
        data = r.json()["data"]
        assert data["items"] == []
        assert data["tip"] == {"kind": "percentage", "value": 0.0}
        assert data["discounts"]["manual"] == 0
        assert data["totals"]["total"] == 0

        client.post(f"/api/orders/{order_id}/items", json={"product_id": burger["id"]})
        r = client.delete(f"/api/orders/{order_id}/items/{burger['id']}")
        assert r.json()["data"]["items"] == []


class TestOrderErrors:
    def test_unknown_order(self, client):
        r = client.get("/api/orders/missing")
        assert r.status_code == 404
        assert r.json() == {"success": False, "error": "Order not found"}

    def test_unknown_product(self, client, order_id):
        r = client.post(f"/api/orders/{order_id}/items", json={"product_id": 404})
        assert r.status_code == 404

    def test_negative_discount_rejected(self, client, order_id):
        r = client.put(f"/api/orders/{order_id}/discount", json={"amount": -1})
        assert r.status_code == 400
        assert r.json()["success"] is False

    def test_bad_tip_kind(self, client, order_id):
        r = client.put(f"/api/orders/{order_id}/tip", json={"kind": "bribe", "value": 1})
        assert r.status_code == 400

    def test_close(self, client, order_id):
        assert client.delete(f"/api/orders/{order_id}").status_code == 200
        assert client.get(f"/api/orders/{order_id}").status_code == 404


class TestReceiptAndPricing:
    def test_receipt_pdf(self, client, order_id, burger):
        client.post(f"/api/orders/{order_id}/items", json={"product_id": burger["id"]})
        client.put(f"/api/orders/{order_id}/discount", json={"amount": 2})
        r = client.get(f"/api/orders/{order_id}/receipt")
        assert r.status_code == 200
        assert r.headers["content-type"] == "application/pdf"
        assert r.content.startswith(b"%PDF")

    def test_price_estimate(self, client):
        r = client.post("/api/pricing/estimate", json={"category": "Supper", "name": "Steak", "description": "large"})
        price = r.json()["data"]["price"]
        assert price >= 10
        assert round(price % 1, 2) == 0.99
