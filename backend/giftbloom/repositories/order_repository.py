# backend/giftbloom/repositories/order_repository.py

import json
from typing import List, Dict, Any, Optional

from giftbloom.core.logger import get_logger
from giftbloom.database import Database
from giftbloom.models.order import (
    Order, OrderItem, NewOrder, OrderUpdate, OrderFilters, OrderStatistics, ProductSnapshot
)
from giftbloom.repositories import order_queries as queries

logger = get_logger("giftbloom.repositories.order")


class OrderRepository:
    def __init__(self, db: Database):
        self.db = db

    def create(self, order: NewOrder) -> Order:
        """Insert the order and all of its items in one transaction."""
        with self.db.transaction() as cursor:
            cursor.execute(queries.INSERT_ORDER, (
                order.id,
                order.user_id,
                order.customer_name,
                order.customer_email,
                order.customer_phone,
                order.billing_address.model_dump_json(),
                order.shipping_address.model_dump_json(),
                order.payment_method,
                order.payment_status,
                order.order_status,
                order.notes,
                order.subtotal,
                order.tax_amount,
                order.shipping_cost,
                order.discount_amount,
                order.total_amount,
            ))

            for item in order.items:
                cursor.execute(queries.INSERT_ORDER_ITEM, (
                    item.id,
                    order.id,
                    item.product_id,
                    item.quantity,
                    item.unit_price,
                    item.total_price,
                ))

            # Read back defaults (timestamps) on the same connection before commit
            created = self._load_order(cursor, order.id)

        logger.info("Order row and items inserted", extra={"order_id": order.id, "item_count": len(order.items)})
        return created

    def find_by_id(self, order_id: str) -> Optional[Order]:
        with self.db.connection() as cursor:
            return self._load_order(cursor, order_id)

    def find_all(self, filters: Optional[OrderFilters] = None) -> List[Order]:
        filters = filters or OrderFilters()
        sql, params = queries.build_select_orders(filters)
        with self.db.connection() as cursor:
            cursor.execute(sql, params)
            rows = cursor.fetchall()
            if not rows:
                return []
            items_by_order = self._load_items(cursor, [row["id"] for row in rows])
        return [self._map_to_order(row, items_by_order.get(row["id"], [])) for row in rows]

    def count(self, filters: Optional[OrderFilters] = None) -> int:
        sql, params = queries.build_count_orders(filters or OrderFilters())
        with self.db.connection() as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
        return int(row["total"]) if row else 0

    def update(self, order_id: str, changes: OrderUpdate) -> Optional[Order]:
        # Raises NoFieldsToUpdateError before a connection is borrowed
        sql, params = queries.build_update(order_id, changes)
        with self.db.transaction() as cursor:
            cursor.execute(sql, params)
            return self._load_order(cursor, order_id)

    def delete(self, order_id: str) -> bool:
        with self.db.transaction() as cursor:
            cursor.execute(queries.DELETE_ORDER_ITEMS, (order_id,))
            cursor.execute(queries.DELETE_ORDER, (order_id,))
            deleted = cursor.rowcount > 0
        return deleted

    def find_product_prices(self, product_ids: List[str]) -> Dict[str, float]:
        """Catalog price per product id; unknown ids are simply absent."""
        if not product_ids:
            return {}
        sql, params = queries.build_select_product_prices(product_ids)
        with self.db.connection() as cursor:
            cursor.execute(sql, params)
            rows = cursor.fetchall()
        return {row["id"]: _to_float(row["price"]) for row in rows}

    def get_order_statistics(self, period: str = "30d") -> OrderStatistics:
        days = queries.parse_period(period)
        with self.db.connection() as cursor:
            cursor.execute(queries.SELECT_STATISTICS, (days,))
            row = cursor.fetchone() or {}
        return OrderStatistics(
            period=period,
            total_orders=int(row.get("total_orders") or 0),
            completed_orders=int(row.get("completed_orders") or 0),
            pending_orders=int(row.get("pending_orders") or 0),
            cancelled_orders=int(row.get("cancelled_orders") or 0),
            total_revenue=_to_float(row.get("total_revenue")),
            average_order_value=round(_to_float(row.get("average_order_value")), 2),
        )

    # --- row mapping helpers ---
    def _load_order(self, cursor, order_id: str) -> Optional[Order]:
        cursor.execute(queries.SELECT_ORDER_BY_ID, (order_id,))
        row = cursor.fetchone()
        if not row:
            return None
        items = self._load_items(cursor, [order_id]).get(order_id, [])
        return self._map_to_order(row, items)

    def _load_items(self, cursor, order_ids: List[str]) -> Dict[str, List[OrderItem]]:
        sql, params = queries.build_select_items(order_ids)
        cursor.execute(sql, params)
        grouped: Dict[str, List[OrderItem]] = {}
        for row in cursor.fetchall():
            grouped.setdefault(row["order_id"], []).append(self._map_to_item(row))
        return grouped

    def _map_to_item(self, row: Dict[str, Any]) -> OrderItem:
        product = None
        if row.get("product_name") is not None:
            product = ProductSnapshot(
                id=row["product_id"],
                name=row.get("product_name"),
                slug=row.get("product_slug"),
                image_url=row.get("product_image_url"),
            )
        return OrderItem(
            id=row["id"],
            order_id=row["order_id"],
            product_id=row["product_id"],
            quantity=int(row["quantity"]),
            unit_price=_to_float(row["unit_price"]),
            total_price=_to_float(row["total_price"]),
            product=product,
        )

    def _map_to_order(self, row: Dict[str, Any], items: List[OrderItem]) -> Order:
        return Order(
            id=row["id"],
            user_id=row.get("user_id"),
            customer_name=row["customer_name"],
            customer_email=row["customer_email"],
            customer_phone=row.get("customer_phone"),
            billing_address=_parse_json(row.get("billing_address")),
            shipping_address=_parse_json(row.get("shipping_address")),
            payment_method=row["payment_method"],
            payment_status=row["payment_status"],
            order_status=row["order_status"],
            notes=row.get("notes"),
            tracking_number=row.get("tracking_number"),
            subtotal=_to_float(row.get("subtotal")),
            tax_amount=_to_float(row.get("tax_amount")),
            shipping_cost=_to_float(row.get("shipping_cost")),
            discount_amount=_to_float(row.get("discount_amount")),
            total_amount=_to_float(row.get("total_amount")),
            items=items,
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


def _to_float(value) -> float:
    # DECIMAL columns arrive as decimal.Decimal
    return 0.0 if value is None else float(value)


def _parse_json(value):
    # JSON columns come back as str (or bytes, depending on the connector build)
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value
