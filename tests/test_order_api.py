"""
HTTP surface: routing, response envelopes and the error handlers.

The service is swapped through ``app.dependency_overrides``; the lifespan is
not entered, so no pool is opened.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from giftbloom.core.errors import (
    DatabaseUnavailableError, InvalidStatusTransitionError, PaymentError,
)
from giftbloom.dependencies import get_order_service
from giftbloom.main import create_app
from giftbloom.models.order import OrderStatistics
from giftbloom.services.order_service import OrderService

from conftest import SHIPPING_ADDRESS, make_order

ORDER_PAYLOAD = {
    "customer_name": "Jamie Rivera",
    "customer_email": "jamie@example.com",
    "shipping_address": SHIPPING_ADDRESS,
    "payment_method": "credit_card",
    "items": [{"product_id": "bear-classic-grad", "quantity": 2, "unit_price": 10.0}],
}


@pytest.fixture
def database():
    db = MagicMock()
    db.is_open = True
    return db


@pytest.fixture
def app(database):
    return create_app(database=database)


@pytest.fixture
def service(app):
    service = MagicMock()
    app.dependency_overrides[get_order_service] = lambda: service
    return service


@pytest.fixture
def client(app, service):
    return TestClient(app)


class TestCreate:
    def test_created(self, client, service):
        service.create_order.return_value = make_order()

        response = client.post("/api/orders", json=ORDER_PAYLOAD)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Order created successfully"
        assert body["data"]["id"] == "order-1"
        assert body["data"]["items"][0]["product_id"] == "bear-classic-grad"
        request = service.create_order.call_args.args[0]
        assert request.items[0].quantity == 2

    def test_missing_fields(self, client, service):
        response = client.post("/api/orders", json={"customer_name": "Jamie"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        assert body["path"] == "/api/orders"
        assert body["method"] == "POST"
        fields = {error["field"] for error in body["errors"]}
        assert {"customer_email", "shipping_address", "items"} <= fields
        service.create_order.assert_not_called()

    def test_empty_items(self, client):
        response = client.post("/api/orders", json={**ORDER_PAYLOAD, "items": []})
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "items"

    def test_zero_quantity(self, client):
        payload = {**ORDER_PAYLOAD, "items": [{"product_id": "p", "quantity": 0, "unit_price": 1.0}]}
        response = client.post("/api/orders", json=payload)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "items.0.quantity"

    def test_bad_email(self, client):
        response = client.post("/api/orders", json={**ORDER_PAYLOAD, "customer_email": "not-an-email"})
        assert response.status_code == 400

    def test_database_down(self, client, service):
        service.create_order.side_effect = DatabaseUnavailableError("Failed to create order: Database pool is not open")
        response = client.post("/api/orders", json=ORDER_PAYLOAD)
        assert response.status_code == 503
        assert response.json()["message"] == "Failed to create order: Database pool is not open"


class TestRead:
    def test_list_with_filters(self, client, service):
        service.get_orders.return_value = ([make_order()], {"page": 2, "limit": 5, "total": 6, "pages": 2})

        response = client.get("/api/orders", params={"status": "pending", "userId": "u-1", "page": 2, "limit": 5})

        assert response.status_code == 200
        body = response.json()
        assert body["pagination"] == {"page": 2, "limit": 5, "total": 6, "pages": 2}
        assert len(body["data"]) == 1
        filters = service.get_orders.call_args.args[0]
        assert (filters.status, filters.user_id, filters.page, filters.limit) == ("pending", "u-1", 2, 5)

    def test_list_defaults(self, client, service):
        service.get_orders.return_value = ([], {"page": 1, "limit": 10, "total": 0, "pages": 0})
        client.get("/api/orders")
        filters = service.get_orders.call_args.args[0]
        assert (filters.page, filters.limit, filters.status) == (1, 10, None)

    @pytest.mark.parametrize("params,field", [
        ({"limit": 500}, "limit"),
        ({"page": 0}, "page"),
        ({"status": "lost"}, "status"),
    ])
    def test_list_rejects_bad_query(self, client, params, field):
        response = client.get("/api/orders", params=params)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == field

    def test_get_found(self, client, service):
        service.get_order_by_id.return_value = make_order()
        response = client.get("/api/orders/order-1")
        assert response.status_code == 200
        assert response.json()["data"]["total_amount"] == 27.59

    def test_get_missing(self, client, service):
        service.get_order_by_id.return_value = None
        response = client.get("/api/orders/nope")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Order not found"}

    def test_tracking(self, client, service):
        service.get_order_tracking.return_value = None
        assert client.get("/api/orders/nope/tracking").status_code == 404

    def test_statistics_not_taken_for_an_id(self, client, service):
        service.get_order_statistics.return_value = OrderStatistics(period="7d", total_orders=2)

        response = client.get("/api/orders/statistics", params={"period": "7d"})

        assert response.status_code == 200
        assert response.json()["data"]["total_orders"] == 2
        service.get_order_statistics.assert_called_once_with("7d")
        service.get_order_by_id.assert_not_called()

    def test_statistics_bad_period(self, client):
        assert client.get("/api/orders/statistics", params={"period": "month"}).status_code == 400


class TestMutations:
    def test_update_status(self, client, service):
        service.update_order_status.return_value = make_order(order_status="processing")

        response = client.patch("/api/orders/order-1/status", json={"status": "processing", "notes": "Packing"})

        assert response.status_code == 200
        assert response.json()["data"]["order_status"] == "processing"
        service.update_order_status.assert_called_once_with("order-1", "processing", "Packing")

    def test_invalid_transition_is_conflict(self, client, service):
        service.update_order_status.side_effect = InvalidStatusTransitionError("completed", "pending")

        response = client.patch("/api/orders/order-1/status", json={"status": "pending"})

        assert response.status_code == 409
        body = response.json()
        assert body["message"] == "Cannot change order status from 'completed' to 'pending'"
        assert body["method"] == "PATCH"
        assert "timestamp" in body

    def test_cancel_without_body(self, client, service):
        service.cancel_order.return_value = make_order(order_status="cancelled")
        response = client.patch("/api/orders/order-1/cancel")
        assert response.status_code == 200
        service.cancel_order.assert_called_once_with("order-1", None)

    def test_cancel_with_reason(self, client, service):
        service.cancel_order.return_value = make_order(order_status="cancelled")
        client.patch("/api/orders/order-1/cancel", json={"reason": "Changed my mind"})
        service.cancel_order.assert_called_once_with("order-1", "Changed my mind")

    def test_payment_conflict(self, client, service):
        service.process_payment.side_effect = PaymentError("Order has already been paid")
        response = client.post("/api/orders/order-1/payment", json={"payment_method": "paypal"})
        assert response.status_code == 409

    def test_payment_bad_method(self, client):
        response = client.post("/api/orders/order-1/payment", json={"payment_method": "bitcoin"})
        assert response.status_code == 400

    def test_delete(self, client, service):
        service.delete_order.return_value = True
        assert client.delete("/api/orders/order-1").json() == {
            "success": True, "message": "Order deleted successfully"
        }
        service.delete_order.return_value = False
        assert client.delete("/api/orders/order-1").status_code == 404


def test_calculate_totals_with_real_pricing(app):
    repository = MagicMock()
    repository.find_product_prices.return_value = {"p": 10.0}
    app.dependency_overrides[get_order_service] = lambda: OrderService(repository)
    client = TestClient(app)

    response = client.post("/api/orders/calculate-totals", json={
        "items": [{"product_id": "p", "quantity": 2, "unit_price": 1.0}],
        "promo_code": "SAVE10",
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["subtotal"] == 20.0
    assert data["total_amount"] == 25.59
    assert data["promo_code_valid"] is True


def test_calculate_totals_unknown_product(app):
    repository = MagicMock()
    repository.find_product_prices.return_value = {}
    app.dependency_overrides[get_order_service] = lambda: OrderService(repository)
    client = TestClient(app)

    response = client.post("/api/orders/calculate-totals", json={
        "items": [{"product_id": "ghost", "quantity": 1}],
    })

    assert response.status_code == 400
    assert "Unknown product: ghost" in response.json()["message"]


class TestAppShell:
    def test_unknown_route(self, client):
        response = client.get("/api/nowhere")
        assert response.status_code == 404
        assert response.json()["message"] == "Route not found"

    def test_unhandled_error(self, app, service):
        service.get_order_by_id.side_effect = KeyError("boom")
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get("/api/orders/order-1")

        assert response.status_code == 500
        assert response.json()["message"] == "Internal server error"

    def test_root(self, client):
        body = client.get("/").json()
        assert body["service"] == "GiftBloom Backend API"
        assert body["status"] == "running"

    def test_health(self, client, database):
        assert client.get("/health").json()["database"] == "connected"
        database.is_open = False
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["database"] == "unavailable"
