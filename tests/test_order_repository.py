"""
OrderRepository against a mocked mysql pool: SQL sequencing, transaction
boundaries and row mapping.
"""

import json
from decimal import Decimal

import mysql.connector
import pytest

from giftbloom.core.errors import NoFieldsToUpdateError, OrderValidationError
from giftbloom.models.order import Address, NewOrder, NewOrderItem, OrderFilters, OrderUpdate
from giftbloom.repositories import order_queries as queries
from giftbloom.repositories.order_repository import OrderRepository

from conftest import SHIPPING_ADDRESS, make_item_row, make_order_row


def make_new_order(item_count=2) -> NewOrder:
    return NewOrder(
        id="order-1",
        customer_name="Jamie Rivera",
        customer_email="jamie@example.com",
        billing_address=Address(**SHIPPING_ADDRESS),
        shipping_address=Address(**SHIPPING_ADDRESS),
        payment_method="credit_card",
        subtotal=20.0,
        tax_amount=1.6,
        shipping_cost=5.99,
        discount_amount=0.0,
        total_amount=27.59,
        items=[
            NewOrderItem(id=f"item-{n}", product_id=f"p-{n}", quantity=1, unit_price=10.0, total_price=10.0)
            for n in range(1, item_count + 1)
        ],
    )


@pytest.fixture
def repository(database):
    return OrderRepository(database)


class TestCreate:
    def test_inserts_order_then_each_item_in_one_transaction(self, repository, conn, cursor):
        cursor.fetchone.return_value = make_order_row()
        cursor.fetchall.return_value = [
            make_item_row(id="item-1", product_id="p-1"),
            make_item_row(id="item-2", product_id="p-2"),
        ]

        order = repository.create(make_new_order())

        statements = [c.args[0] for c in cursor.execute.call_args_list]
        assert statements[0] == queries.INSERT_ORDER
        assert statements[1:3] == [queries.INSERT_ORDER_ITEM, queries.INSERT_ORDER_ITEM]
        assert statements[3] == queries.SELECT_ORDER_BY_ID
        conn.start_transaction.assert_called_once()
        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        conn.close.assert_called_once()

        assert order.id == "order-1"
        assert [item.product_id for item in order.items] == ["p-1", "p-2"]
        assert order.shipping_address.city == "Austin"

    def test_order_params_serialize_addresses(self, repository, cursor):
        cursor.fetchone.return_value = make_order_row()
        cursor.fetchall.return_value = []

        repository.create(make_new_order(item_count=1))

        params = cursor.execute.call_args_list[0].args[1]
        assert len(params) == 16
        assert json.loads(params[6])["postal_code"] == "73301"

    def test_failing_item_rolls_back_everything(self, repository, conn, cursor):
        def execute(sql, params=None):
            if sql == queries.INSERT_ORDER_ITEM and params[2] == "p-3":
                raise mysql.connector.Error("Cannot add or update a child row")

        cursor.execute.side_effect = execute

        with pytest.raises(mysql.connector.Error):
            repository.create(make_new_order(item_count=3))

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        conn.close.assert_called_once()


class TestRead:
    def test_find_by_id_missing(self, repository, cursor):
        cursor.fetchone.return_value = None
        assert repository.find_by_id("nope") is None
        assert cursor.execute.call_count == 1

    def test_find_by_id_maps_decimals_and_product(self, repository, cursor):
        cursor.fetchone.return_value = make_order_row()
        cursor.fetchall.return_value = [make_item_row()]

        order = repository.find_by_id("order-1")

        assert order.total_amount == 27.59
        assert isinstance(order.subtotal, float)
        assert order.items[0].product.name == "Classic Graduation Bear"
        assert order.items[0].has_consistent_total

    def test_item_without_product_row(self, repository, cursor):
        cursor.fetchone.return_value = make_order_row()
        cursor.fetchall.return_value = [make_item_row(product_name=None, product_slug=None)]
        assert repository.find_by_id("order-1").items[0].product is None

    def test_json_columns_as_bytes(self, repository, cursor):
        cursor.fetchone.return_value = make_order_row(billing_address=json.dumps(SHIPPING_ADDRESS).encode())
        cursor.fetchall.return_value = []
        assert repository.find_by_id("order-1").billing_address.street == "12 Campus Drive"

    def test_find_all_loads_items_in_one_query(self, repository, cursor):
        cursor.fetchall.side_effect = [
            [make_order_row(id="order-1"), make_order_row(id="order-2")],
            [make_item_row(order_id="order-1")],
        ]

        orders = repository.find_all(OrderFilters(page=2, limit=5))

        assert cursor.execute.call_count == 2
        first_sql, first_params = cursor.execute.call_args_list[0].args
        assert first_params == [5, 5]
        items_sql, items_params = cursor.execute.call_args_list[1].args
        assert "IN (%s, %s)" in items_sql
        assert items_params == ["order-1", "order-2"]
        assert [len(o.items) for o in orders] == [1, 0]

    def test_find_all_empty(self, repository, cursor):
        cursor.fetchall.return_value = []
        assert repository.find_all() == []
        assert cursor.execute.call_count == 1

    def test_count(self, repository, cursor):
        cursor.fetchone.return_value = {"total": 7}
        assert repository.count(OrderFilters(status="pending")) == 7


class TestUpdate:
    def test_empty_update_never_touches_database(self, repository, pool):
        with pytest.raises(NoFieldsToUpdateError):
            repository.update("order-1", OrderUpdate())
        pool.get_connection.assert_not_called()

    def test_update_returns_reloaded_order(self, repository, conn, cursor):
        cursor.fetchone.return_value = make_order_row(order_status="processing")
        cursor.fetchall.return_value = []

        order = repository.update("order-1", OrderUpdate(order_status="processing"))

        sql, params = cursor.execute.call_args_list[0].args
        assert sql.startswith("UPDATE orders SET order_status = %s")
        assert params == ["processing", "order-1"]
        assert order.order_status == "processing"
        conn.commit.assert_called_once()

    def test_update_missing_order(self, repository, cursor):
        cursor.fetchone.return_value = None
        assert repository.update("nope", OrderUpdate(notes="hi")) is None


class TestDelete:
    def test_items_deleted_before_order(self, repository, cursor):
        cursor.rowcount = 1
        assert repository.delete("order-1") is True
        statements = [c.args[0] for c in cursor.execute.call_args_list]
        assert statements == [queries.DELETE_ORDER_ITEMS, queries.DELETE_ORDER]

    def test_missing_order(self, repository, cursor):
        cursor.rowcount = 0
        assert repository.delete("nope") is False


class TestProductPrices:
    def test_prices_by_id(self, repository, cursor, conn):
        cursor.fetchall.return_value = [
            {"id": "bear-classic-grad", "price": Decimal("24.99")},
            {"id": "roses-dozen", "price": Decimal("39.00")},
        ]

        prices = repository.find_product_prices(["bear-classic-grad", "roses-dozen", "retired-mug"])

        sql, params = cursor.execute.call_args.args
        assert sql.startswith("SELECT id, price FROM products")
        assert params == ["bear-classic-grad", "roses-dozen", "retired-mug"]
        assert prices == {"bear-classic-grad": 24.99, "roses-dozen": 39.0}
        conn.start_transaction.assert_not_called()

    def test_no_ids_skips_the_query(self, repository, pool):
        assert repository.find_product_prices([]) == {}
        pool.get_connection.assert_not_called()


class TestStatistics:
    def test_aggregates(self, repository, cursor):
        cursor.fetchone.return_value = {
            "total_orders": 4,
            "total_revenue": Decimal("120.50"),
            "average_order_value": Decimal("30.12345"),
            "completed_orders": Decimal("2"),
            "pending_orders": Decimal("1"),
            "cancelled_orders": Decimal("1"),
        }

        stats = repository.get_order_statistics("7d")

        assert cursor.execute.call_args.args[1] == (7,)
        assert stats.period == "7d"
        assert stats.total_orders == 4
        assert stats.completed_orders == 2
        assert stats.total_revenue == 120.5
        assert stats.average_order_value == 30.12

    def test_bad_period(self, repository, pool):
        with pytest.raises(OrderValidationError):
            repository.get_order_statistics("month")
        pool.get_connection.assert_not_called()
