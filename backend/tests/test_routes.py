"""
Public HTTP API tests: storefront, checkout, order lookup, tracking, chat history.
"""

from datetime import date

import pytest

from giftshop.models import Product
from giftshop.services import chat_service


# =============================================================================
# SYSTEM
# =============================================================================


def test_root_banner(client, db_session):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Cash on Delivery" in resp.get_json()["message"]


def test_health(client, db_session):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["database"]["status"] == "healthy"


# =============================================================================
# CHECKOUT
# =============================================================================


class TestCheckout:
    def test_asha_example(self, client, db_session, checkout_payload):
        resp = client.post("/api/checkout", json=checkout_payload())
        assert resp.status_code == 200

        body = resp.get_json()
        assert body["success"] is True
        assert body["trackingCode"].startswith("PINKIES")
        assert body["trackingNumber"] == body["trackingCode"]
        assert body["orderId"] > 0
        assert body["total"] == 4599
        assert body["payment_method"] == "cash_on_delivery"
        assert body["payment_status"] == "pending"
        assert body["currency"] == "INR"
        assert isinstance(date.fromisoformat(body["estimatedDelivery"]), date)

    def test_extra_storefront_keys_ignored(self, client, db_session, checkout_payload):
        resp = client.post("/api/checkout", json=checkout_payload(payment_method="cash_on_delivery", coupon="LOVE10"))
        assert resp.status_code == 200

    def test_total_zero_rejected(self, client, db_session, checkout_payload):
        resp = client.post("/api/checkout", json=checkout_payload(total=0))
        assert resp.status_code == 400
        assert "at least 1" in resp.get_json()["error"]

    def test_total_too_large_rejected(self, client, db_session, checkout_payload):
        resp = client.post("/api/checkout", json=checkout_payload(total=10**20))
        assert resp.status_code == 400
        assert "cannot exceed" in resp.get_json()["error"]

    def test_non_string_city_rejected(self, client, db_session, checkout_payload):
        resp = client.post("/api/checkout", json=checkout_payload(city=["x"]))
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "city must be a string"}

    def test_total_one_accepted(self, client, db_session, checkout_payload):
        resp = client.post("/api/checkout", json=checkout_payload(total=1))
        assert resp.status_code == 200

    def test_missing_city_rejected(self, client, db_session, checkout_payload):
        resp = client.post("/api/checkout", json=checkout_payload(city=None))
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Please fill all required fields: city"

    def test_empty_body_rejected(self, client, db_session):
        resp = client.post("/api/checkout", data="not json", content_type="text/plain")
        assert resp.status_code == 400


# =============================================================================
# ORDER LOOKUP / PAYMENT
# =============================================================================


class TestOrders:
    def test_get_order(self, client, order):
        resp = client.get(f"/api/orders/{order.id}")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["id"] == order.id
        assert body["tracking_code"] == order.tracking_code
        assert body["items"][0]["quantity"] == 1

    def test_get_missing_order(self, client, db_session):
        resp = client.get("/api/orders/9999")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Order not found"}

    def test_customer_confirm_payment(self, client, order):
        resp = client.post(f"/api/orders/{order.id}/confirm-payment")
        assert resp.status_code == 200
        assert resp.get_json()["success"] is True

        status = client.get(f"/api/payment-status/{order.id}").get_json()
        assert status["payment_status"] == "paid"
        assert status["amount"] == 4599

    def test_confirm_payment_missing_order(self, client, db_session):
        resp = client.post("/api/orders/9999/confirm-payment")
        assert resp.status_code == 404

    def test_payment_status_missing_order(self, client, db_session):
        assert client.get("/api/payment-status/9999").status_code == 404


class TestTracking:
    def test_tracking_lookup(self, client, order):
        client.post(f"/api/orders/{order.id}/confirm-payment")

        resp = client.get(f"/api/order-tracking/{order.tracking_code}")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["id"] == order.id
        assert body["currency"] == "INR"
        assert [h["status"] for h in body["trackingHistory"]] == ["paid", "pending"]
        assert [t["status"] for t in body["timeline"]] == ["pending", "paid"]

    def test_unknown_tracking_code(self, client, db_session):
        resp = client.get("/api/order-tracking/PINKIESNOPE")
        assert resp.status_code == 404


class TestChatHistory:
    def test_list_messages(self, client, order):
        chat_service.post_message(order.id, "customer", "a@x.com", "hi")
        chat_service.post_message(order.id, "admin", None, "hello!")

        resp = client.get(f"/api/chat-messages/{order.id}")
        assert resp.status_code == 200
        assert [m["message"] for m in resp.get_json()] == ["hi", "hello!"]

    def test_unknown_order_has_empty_history(self, client, db_session):
        resp = client.get("/api/chat-messages/9999")
        assert resp.status_code == 200
        assert resp.get_json() == []


# =============================================================================
# CATALOG / CONTACT
# =============================================================================


@pytest.fixture
def products(db_session):
    rows = [
        Product(name="Rose Gold Necklace", price=4599, category="jewelry",
                description="Delicate chain", featured=True),
        Product(name="Pink Teddy Bear", price=899, category="toys",
                description="Soft and cuddly"),
        Product(name="Heart Earrings", price=1299, category="jewelry",
                description="Pink enamel hearts"),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


class TestCatalog:
    def test_list_all(self, client, products):
        resp = client.get("/api/products")
        assert resp.status_code == 200
        assert len(resp.get_json()) == 3

    def test_category_filter(self, client, products):
        names = [p["name"] for p in client.get("/api/products?category=jewelry").get_json()]
        assert names == ["Rose Gold Necklace", "Heart Earrings"]

    def test_category_all(self, client, products):
        assert len(client.get("/api/products?category=all").get_json()) == 3

    def test_search_name_or_description(self, client, products):
        names = {p["name"] for p in client.get("/api/products?search=pink").get_json()}
        assert names == {"Pink Teddy Bear", "Heart Earrings"}

    def test_get_product(self, client, products):
        resp = client.get(f"/api/products/{products[1].id}")
        assert resp.status_code == 200
        assert resp.get_json()["price"] == 899

    def test_get_missing_product(self, client, db_session):
        assert client.get("/api/products/9999").status_code == 404


class TestContact:
    def test_contact_message(self, client, db_session):
        resp = client.post("/api/contact", json={
            "name": "Asha", "email": "a@x.com", "message": "Do you ship to Goa?",
        })
        assert resp.status_code == 200
        assert resp.get_json()["id"] > 0

    def test_contact_requires_fields(self, client, db_session):
        resp = client.post("/api/contact", json={"name": "Asha"})
        assert resp.status_code == 400
