# backend/giftbloom/repositories/order_queries.py

"""
SQL used by OrderRepository.

Dynamic clauses are assembled only from the fixed column maps below, so the
SQL text never contains caller-supplied strings; values always travel as
``%s`` parameters.
"""

import re
from typing import Any, List, Sequence, Tuple

from giftbloom.core.errors import NoFieldsToUpdateError, OrderValidationError
from giftbloom.models.order import OrderFilters, OrderUpdate

ORDER_COLUMNS = (
    "o.id, o.user_id, o.customer_name, o.customer_email, o.customer_phone, "
    "o.billing_address, o.shipping_address, o.payment_method, o.payment_status, "
    "o.order_status, o.notes, o.tracking_number, o.subtotal, o.tax_amount, "
    "o.shipping_cost, o.discount_amount, o.total_amount, o.created_at, o.updated_at"
)

INSERT_ORDER = """
    INSERT INTO orders (
        id, user_id, customer_name, customer_email, customer_phone,
        billing_address, shipping_address, payment_method,
        payment_status, order_status, notes, subtotal,
        tax_amount, shipping_cost, discount_amount, total_amount
    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
"""

INSERT_ORDER_ITEM = """
    INSERT INTO order_items (
        id, order_id, product_id, quantity, unit_price, total_price
    ) VALUES (%s, %s, %s, %s, %s, %s)
"""

SELECT_ORDER_BY_ID = f"SELECT {ORDER_COLUMNS} FROM orders o WHERE o.id = %s"

SELECT_ITEMS = """
    SELECT oi.id, oi.order_id, oi.product_id, oi.quantity, oi.unit_price, oi.total_price,
           p.name AS product_name, p.slug AS product_slug, p.image_url AS product_image_url
    FROM order_items oi
    LEFT JOIN products p ON oi.product_id = p.id
    WHERE oi.order_id IN ({placeholders})
    ORDER BY oi.order_id, oi.id
"""

SELECT_PRODUCT_PRICES = "SELECT id, price FROM products WHERE id IN ({placeholders})"

DELETE_ORDER_ITEMS = "DELETE FROM order_items WHERE order_id = %s"
DELETE_ORDER = "DELETE FROM orders WHERE id = %s"

SELECT_STATISTICS = """
    SELECT
        COUNT(*) AS total_orders,
        COALESCE(SUM(total_amount), 0) AS total_revenue,
        COALESCE(AVG(total_amount), 0) AS average_order_value,
        COALESCE(SUM(CASE WHEN order_status = 'completed' THEN 1 ELSE 0 END), 0) AS completed_orders,
        COALESCE(SUM(CASE WHEN order_status = 'pending' THEN 1 ELSE 0 END), 0) AS pending_orders,
        COALESCE(SUM(CASE WHEN order_status = 'cancelled' THEN 1 ELSE 0 END), 0) AS cancelled_orders
    FROM orders
    WHERE created_at >= CURRENT_DATE - INTERVAL %s DAY
"""

# filter field -> predicate
FILTER_PREDICATES = {
    "status": "o.order_status = %s",
    "user_id": "o.user_id = %s",
    "start_date": "o.created_at >= %s",
    "end_date": "o.created_at <= %s",
}

# OrderUpdate field -> column
UPDATABLE_COLUMNS = {
    "order_status": "order_status",
    "payment_status": "payment_status",
    "notes": "notes",
    "tracking_number": "tracking_number",
}

PERIOD_PATTERN = re.compile(r"^(\d+)d$")


def build_where(filters: OrderFilters) -> Tuple[str, List[Any]]:
    """AND together a predicate for every filter that is present."""
    clauses = []
    params = []
    for field, predicate in FILTER_PREDICATES.items():
        value = getattr(filters, field)
        if value is not None:
            clauses.append(predicate)
            params.append(value)
    if not clauses:
        return "", []
    return "WHERE " + " AND ".join(clauses), params


def build_pagination(filters: OrderFilters) -> Tuple[str, List[Any]]:
    """LIMIT/OFFSET, only when a limit was asked for."""
    if filters.limit is None:
        return "", []
    page = filters.page or 1
    return "LIMIT %s OFFSET %s", [filters.limit, (page - 1) * filters.limit]


def build_select_orders(filters: OrderFilters) -> Tuple[str, List[Any]]:
    where, params = build_where(filters)
    pagination, page_params = build_pagination(filters)
    sql = f"SELECT {ORDER_COLUMNS} FROM orders o {where} ORDER BY o.created_at DESC {pagination}"
    return sql.strip(), params + page_params


def build_count_orders(filters: OrderFilters) -> Tuple[str, List[Any]]:
    where, params = build_where(filters)
    return f"SELECT COUNT(*) AS total FROM orders o {where}".strip(), params


def build_update(order_id: str, changes: OrderUpdate) -> Tuple[str, List[Any]]:
    """
    UPDATE for the explicitly set fields of ``changes``.

    Raises NoFieldsToUpdateError when nothing was set, so the caller never
    reaches the database with an empty SET list.
    """
    fields = changes.model_dump(exclude_unset=True)
    if not fields:
        raise NoFieldsToUpdateError()
    assignments = [f"{UPDATABLE_COLUMNS[name]} = %s" for name in fields]
    assignments.append("updated_at = CURRENT_TIMESTAMP")
    sql = f"UPDATE orders SET {', '.join(assignments)} WHERE id = %s"
    return sql, list(fields.values()) + [order_id]


def _placeholders(values: Sequence[Any]) -> str:
    return ", ".join(["%s"] * len(values))


def build_select_items(order_ids: Sequence[str]) -> Tuple[str, List[Any]]:
    return SELECT_ITEMS.format(placeholders=_placeholders(order_ids)), list(order_ids)


def build_select_product_prices(product_ids: Sequence[str]) -> Tuple[str, List[Any]]:
    return SELECT_PRODUCT_PRICES.format(placeholders=_placeholders(product_ids)), list(product_ids)


def parse_period(period: str) -> int:
    """'30d' -> 30"""
    match = PERIOD_PATTERN.match(period or "")
    if not match or int(match.group(1)) == 0:
        raise OrderValidationError(f"Invalid statistics period '{period}'. Use a day count such as '30d'.")
    return int(match.group(1))
