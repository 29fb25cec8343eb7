"""
Shared fixtures: a Database whose pool is a MagicMock, and row/model factories.
"""

import json
from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

import pytest

from giftbloom.database import Database
from giftbloom.models.order import Order, OrderItem

CREATED_AT = datetime(2024, 5, 1, 12, 0, 0)

SHIPPING_ADDRESS = {
    "street": "12 Campus Drive",
    "city": "Austin",
    "state": "TX",
    "postal_code": "73301",
    "country": "US",
}


def make_order_row(**overrides) -> dict:
    """A row shaped like SELECT_ORDER_BY_ID returns it."""
    row = {
        "id": "order-1",
        "user_id": None,
        "customer_name": "Jamie Rivera",
        "customer_email": "jamie@example.com",
        "customer_phone": None,
        "billing_address": json.dumps(SHIPPING_ADDRESS),
        "shipping_address": json.dumps(SHIPPING_ADDRESS),
        "payment_method": "credit_card",
        "payment_status": "pending",
        "order_status": "pending",
        "notes": None,
        "tracking_number": None,
        "subtotal": Decimal("20.00"),
        "tax_amount": Decimal("1.60"),
        "shipping_cost": Decimal("5.99"),
        "discount_amount": Decimal("0.00"),
        "total_amount": Decimal("27.59"),
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    }
    row.update(overrides)
    return row


def make_item_row(**overrides) -> dict:
    row = {
        "id": "item-1",
        "order_id": "order-1",
        "product_id": "bear-classic-grad",
        "quantity": 2,
        "unit_price": Decimal("10.00"),
        "total_price": Decimal("20.00"),
        "product_name": "Classic Graduation Bear",
        "product_slug": "classic-graduation-bear",
        "product_image_url": None,
    }
    row.update(overrides)
    return row


def make_order(**overrides) -> Order:
    data = {
        "id": "order-1",
        "customer_name": "Jamie Rivera",
        "customer_email": "jamie@example.com",
        "shipping_address": SHIPPING_ADDRESS,
        "billing_address": SHIPPING_ADDRESS,
        "payment_method": "credit_card",
        "subtotal": 20.0,
        "tax_amount": 1.6,
        "shipping_cost": 5.99,
        "total_amount": 27.59,
        "items": [
            OrderItem(id="item-1", order_id="order-1", product_id="bear-classic-grad",
                      quantity=2, unit_price=10.0, total_price=20.0)
        ],
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    }
    data.update(overrides)
    return Order(**data)


@pytest.fixture
def pool():
    with patch("giftbloom.database.pooling.MySQLConnectionPool") as pool_cls:
        yield pool_cls.return_value


@pytest.fixture
def database(pool):
    db = Database(config={"host": "db.test", "database": "giftbloom_test"}, pool_size=2)
    db.open()
    return db


@pytest.fixture
def conn(pool):
    return pool.get_connection.return_value


@pytest.fixture
def cursor(conn):
    return conn.cursor.return_value
