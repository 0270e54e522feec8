"""Integration tests for Order API endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api.errors import register_exception_handlers
from ordering.api.routes import order_router, payment_router

BUYER = {"X-User-Id": "user-001"}
STRANGER = {"X-User-Id": "user-999"}
ADMIN = {"X-User-Id": "admin-001", "X-User-Role": "admin"}
SIGNED = {"X-Gateway-Signature": "test-signature"}

ORDER_BODY = {
    "items": [{"itemRef": "album-A", "quantity": 1}],
    "subtotal": 10.0,
    "taxRate": 0.1,
    "total": 11.0,
}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(order_router)
    app.include_router(payment_router)
    register_exception_handlers(app)
    return TestClient(app)


def _create_order(client, headers=BUYER, body=ORDER_BODY):
    """Helper: POST /orders and return the order payload."""
    response = client.post("/orders", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["order"]


def _report(client, order, outcome, reason=None):
    payload = {"intentId": order["paymentIntentId"], "outcome": outcome}
    if reason:
        payload["failureReason"] = reason
    return client.post("/payments/webhook", json=payload, headers=SIGNED)


def _order_count(client):
    return client.get("/orders", headers=ADMIN).json()["count"]


class TestCreateOrderEndpoint:
    def test_create_order(self, client):
        response = client.post("/orders", json=ORDER_BODY, headers=BUYER)

        assert response.status_code == 201
        data = response.json()
        assert data["clientSecret"]
        order = data["order"]
        assert order["status"] == "pending"
        assert order["ownerId"] == "user-001"
        assert order["items"] == [{"itemRef": "album-A", "quantity": 1}]
        assert order["taxRate"] == 0.1
        assert order["total"] == 11.0
        assert order["paymentIntentId"]
        assert order["createdAt"]

    def test_missing_identity_is_unauthorized(self, client):
        response = client.post("/orders", json=ORDER_BODY)
        assert response.status_code == 401

    def test_empty_items_is_bad_request(self, client):
        response = client.post("/orders", json={**ORDER_BODY, "items": []}, headers=BUYER)
        assert response.status_code == 400
        assert _order_count(client) == 0

    def test_missing_items_is_bad_request(self, client):
        body = {k: v for k, v in ORDER_BODY.items() if k != "items"}
        response = client.post("/orders", json=body, headers=BUYER)
        assert response.status_code == 400

    def test_zero_quantity_is_bad_request(self, client):
        body = {**ORDER_BODY, "items": [{"itemRef": "album-A", "quantity": 0}]}
        response = client.post("/orders", json=body, headers=BUYER)
        assert response.status_code == 400

    def test_total_mismatch_is_bad_request(self, client):
        response = client.post("/orders", json={**ORDER_BODY, "total": 15.0}, headers=BUYER)
        assert response.status_code == 400
        assert "total" in response.json()["errors"]
        assert _order_count(client) == 0

    def test_idempotency_key_replays(self, client):
        headers = {**BUYER, "Idempotency-Key": "cart-42"}
        first = client.post("/orders", json=ORDER_BODY, headers=headers)
        second = client.post("/orders", json=ORDER_BODY, headers=headers)

        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json()["order"]["id"] == "cart-42"
        assert second.json()["clientSecret"] == first.json()["clientSecret"]
        assert _order_count(client) == 1

    def test_malformed_idempotency_key(self, client):
        headers = {**BUYER, "Idempotency-Key": "not a valid key!"}
        response = client.post("/orders", json=ORDER_BODY, headers=headers)
        assert response.status_code == 400

    def test_gateway_rejection_is_payment_required(self, client, fake_gateway):
        fake_gateway.reject_next("Amount must be at least 50 cents")
        response = client.post("/orders", json=ORDER_BODY, headers=BUYER)
        assert response.status_code == 402
        assert _order_count(client) == 0

    def test_gateway_outage_is_service_unavailable(self, client, fake_gateway):
        fake_gateway.fail_transiently(times=3)
        response = client.post("/orders", json=ORDER_BODY, headers=BUYER)
        assert response.status_code == 503
        assert _order_count(client) == 0


class TestReadEndpoints:
    def test_list_orders_requires_elevated_role(self, client):
        _create_order(client)
        assert client.get("/orders", headers=BUYER).status_code == 403

    def test_list_orders_as_admin(self, client):
        _create_order(client)
        _create_order(client, headers=STRANGER)

        response = client.get("/orders", headers=ADMIN)

        assert response.status_code == 200
        assert response.json()["count"] == 2
        assert len(response.json()["orders"]) == 2

    def test_list_my_orders(self, client):
        mine = _create_order(client)
        _create_order(client, headers=STRANGER)

        response = client.get("/orders/mine", headers=BUYER)

        assert response.status_code == 200
        assert [o["id"] for o in response.json()["orders"]] == [mine["id"]]

    def test_get_order(self, client):
        order = _create_order(client)
        response = client.get(f"/orders/{order['id']}", headers=BUYER)
        assert response.status_code == 200
        assert response.json()["order"]["id"] == order["id"]

    def test_get_order_as_admin(self, client):
        order = _create_order(client)
        assert client.get(f"/orders/{order['id']}", headers=ADMIN).status_code == 200

    def test_get_order_forbidden(self, client):
        order = _create_order(client)
        assert client.get(f"/orders/{order['id']}", headers=STRANGER).status_code == 403

    def test_get_order_not_found(self, client):
        assert client.get("/orders/missing-order", headers=BUYER).status_code == 404


class TestDeleteEndpoint:
    def test_delete_order(self, client):
        order = _create_order(client)

        response = client.delete(f"/orders/{order['id']}", headers=BUYER)

        assert response.status_code == 200
        assert response.json()["status"] == "deleted"
        assert client.get(f"/orders/{order['id']}", headers=BUYER).status_code == 404

    def test_delete_forbidden(self, client):
        order = _create_order(client)
        assert client.delete(f"/orders/{order['id']}", headers=STRANGER).status_code == 403
        assert _order_count(client) == 1

    def test_delete_not_found(self, client):
        assert client.delete("/orders/missing-order", headers=BUYER).status_code == 404


class TestPaymentRetryEndpoint:
    def test_retry_failed_payment(self, client):
        order = _create_order(client)
        _report(client, order, "failed", "Card declined")

        response = client.post(f"/orders/{order['id']}/payment/retry", headers=BUYER)

        assert response.status_code == 200
        data = response.json()
        assert data["order"]["status"] == "pending"
        assert data["order"]["paymentAttempts"] == 2
        assert data["order"]["paymentIntentId"] == order["paymentIntentId"]
        assert data["clientSecret"]

    def test_retry_pending_order_conflicts(self, client):
        order = _create_order(client)
        response = client.post(f"/orders/{order['id']}/payment/retry", headers=BUYER)
        assert response.status_code == 409


class TestCompleteEndpoint:
    def test_complete_paid_order(self, client, fake_dispatcher):
        order = _create_order(client)
        _report(client, order, "succeeded")

        response = client.put(f"/orders/{order['id']}/complete", headers=ADMIN)

        assert response.status_code == 200
        assert response.json()["order"]["status"] == "complete"
        assert fake_dispatcher.count_for(order["id"]) == 1

    def test_complete_twice_conflicts(self, client, fake_dispatcher):
        order = _create_order(client)
        _report(client, order, "succeeded")
        client.put(f"/orders/{order['id']}/complete", headers=ADMIN)

        response = client.put(f"/orders/{order['id']}/complete", headers=ADMIN)

        assert response.status_code == 409
        assert fake_dispatcher.count_for(order["id"]) == 1

    def test_pending_order_cannot_complete(self, client):
        order = _create_order(client)
        response = client.put(f"/orders/{order['id']}/complete", headers=ADMIN)
        assert response.status_code == 409

    def test_complete_requires_elevated_role(self, client):
        order = _create_order(client)
        _report(client, order, "succeeded")
        assert client.put(f"/orders/{order['id']}/complete", headers=BUYER).status_code == 403
