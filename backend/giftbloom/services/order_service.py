# backend/giftbloom/services/order_service.py

import math
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple, Dict, Any

from giftbloom.core import config
from giftbloom.core.errors import (
    GiftBloomError, InvalidStatusTransitionError, OrderPersistenceError, OrderValidationError, PaymentError,
)
from giftbloom.core.logger import get_logger
from giftbloom.models.order import (
    Address, CreateOrderRequest, NewOrder, NewOrderItem, Order, OrderFilters, OrderItemCreate,
    OrderStatistics, OrderTotals, OrderTracking, OrderUpdate, PaymentResult, ProcessPaymentRequest,
    TrackingStep,
)
from giftbloom.repositories.order_repository import OrderRepository
from giftbloom.services.pricing import PricingRules, to_money

logger = get_logger("giftbloom.services.order")

# current status -> statuses it may move to
ALLOWED_TRANSITIONS = {
    "pending": {"processing", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"completed"},
    "completed": set(),
    "cancelled": set(),
}

TRACKING_STEPS = [
    ("pending", "Order placed"),
    ("processing", "Preparing your gift"),
    ("shipped", "On its way"),
    ("completed", "Delivered"),
]


@contextmanager
def _operation(action: str):
    """Prefix every failure raised inside the block with the operation name."""
    try:
        yield
    except GiftBloomError as err:
        err.message = f"Failed to {action}: {err.message}"
        err.args = (err.message,)
        raise
    except Exception as err:
        logger.error("Order operation failed", extra={"operation": action, "error": str(err)})
        raise OrderPersistenceError(f"Failed to {action}: {err}") from err


def generate_tracking_number() -> str:
    return f"GB{uuid.uuid4().hex[:10].upper()}"


def can_transition(current: str, requested: str) -> bool:
    # Re-asserting the current status is how notes get updated on their own
    return requested == current or requested in ALLOWED_TRANSITIONS.get(current, set())


def _append_note(existing: Optional[str], note: str) -> str:
    return f"{existing}\n{note}" if existing else note


def cancellation_changes(order: Order, reason: Optional[str] = None) -> Dict[str, Any]:
    """Fields written whenever an order becomes cancelled, whichever route cancels it."""
    changes = {
        "order_status": "cancelled",
        "notes": _append_note(order.notes, f"Cancelled: {reason}" if reason else "Cancelled by customer"),
    }
    if order.payment_status == "paid":
        changes["payment_status"] = "refunded"
    return changes


class OrderService:
    def __init__(self, repository: OrderRepository, pricing: Optional[PricingRules] = None,
                 delivery_days: int = config.ESTIMATED_DELIVERY_DAYS):
        self.repository = repository
        self.pricing = pricing or PricingRules()
        self.delivery_days = delivery_days

    def _price_items(self, items: List[OrderItemCreate]) -> List[OrderItemCreate]:
        """Replace client-sent unit prices with the catalog prices from the products table."""
        product_ids = sorted({item.product_id for item in items})
        with _operation("look up product prices"):
            prices = self.repository.find_product_prices(product_ids)

        missing = [product_id for product_id in product_ids if product_id not in prices]
        if missing:
            raise OrderValidationError(f"Unknown product: {', '.join(missing)}")

        priced = []
        for item in items:
            price = prices[item.product_id]
            if item.unit_price is not None and to_money(item.unit_price) != to_money(price):
                logger.info("Client price replaced by catalog price",
                            extra={"product_id": item.product_id, "client_price": item.unit_price, "price": price})
            priced.append(item.model_copy(update={"unit_price": price}))
        return priced

    def calculate_order_totals(self, items: List[OrderItemCreate], shipping_address: Optional[Address] = None,
                               promo_code: Optional[str] = None) -> OrderTotals:
        # Flat-rate shipping: the address does not change the price
        totals = self.pricing.calculate(self._price_items(items), promo_code)
        if promo_code and not totals.promo_code_valid:
            logger.info("Unknown promo code ignored", extra={"promo_code": promo_code})
        return totals

    def create_order(self, request: CreateOrderRequest) -> Order:
        """
        Store a new pending order.

        Unit prices come from the products table and totals are recomputed
        from them and the promo code; monetary fields sent by the client are
        not trusted.
        """
        items = self._price_items(request.items)
        totals = self.pricing.calculate(items, request.promo_code)
        order_id = str(uuid.uuid4())

        new_order = NewOrder(
            id=order_id,
            user_id=request.user_id,
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            customer_phone=request.customer_phone,
            billing_address=request.billing_address or request.shipping_address,
            shipping_address=request.shipping_address,
            payment_method=request.payment_method,
            notes=request.notes,
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            shipping_cost=totals.shipping_cost,
            discount_amount=totals.discount_amount,
            total_amount=totals.total_amount,
            items=[
                NewOrderItem(
                    id=str(uuid.uuid4()),
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=float(to_money(item.unit_price)),
                    total_price=float(to_money(to_money(item.unit_price) * item.quantity)),
                )
                for item in items
            ],
        )

        with _operation("create order"):
            order = self.repository.create(new_order)

        logger.info("Order created", extra={"order_id": order_id, "total_amount": totals.total_amount,
                                            "item_count": len(new_order.items)})
        return order

    def get_order_by_id(self, order_id: str) -> Optional[Order]:
        with _operation("get order"):
            return self.repository.find_by_id(order_id)

    def get_orders(self, filters: OrderFilters) -> Tuple[List[Order], Dict[str, Any]]:
        with _operation("get orders"):
            orders = self.repository.find_all(filters)
            total = self.repository.count(filters)

        limit = filters.limit or max(total, 1)
        pagination = {
            "page": filters.page or 1,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
        }
        return orders, pagination

    def _ensure_transition(self, order: Order, requested: str):
        if not can_transition(order.order_status, requested):
            logger.warning("Rejected status transition",
                           extra={"order_id": order.id, "from": order.order_status, "to": requested})
            raise InvalidStatusTransitionError(order.order_status, requested)

    def update_order_status(self, order_id: str, status: str, notes: Optional[str] = None) -> Optional[Order]:
        with _operation("update order status"):
            order = self.repository.find_by_id(order_id)
        if order is None:
            return None

        self._ensure_transition(order, status)

        if status == "cancelled" and order.order_status != "cancelled":
            changes = cancellation_changes(order, notes)
        else:
            changes = {"order_status": status}
            if notes is not None:
                changes["notes"] = notes
        if status == "shipped" and not order.tracking_number:
            changes["tracking_number"] = generate_tracking_number()

        with _operation("update order status"):
            updated = self.repository.update(order_id, OrderUpdate(**changes))

        logger.info("Order status updated", extra={"order_id": order_id, "from": order.order_status, "to": status})
        return updated

    def cancel_order(self, order_id: str, reason: Optional[str] = None) -> Optional[Order]:
        with _operation("cancel order"):
            order = self.repository.find_by_id(order_id)
        if order is None:
            return None

        # Re-asserting is allowed for status updates, not for a second cancellation
        if order.order_status == "cancelled":
            raise InvalidStatusTransitionError(order.order_status, "cancelled")
        self._ensure_transition(order, "cancelled")

        changes = cancellation_changes(order, reason)

        with _operation("cancel order"):
            cancelled = self.repository.update(order_id, OrderUpdate(**changes))

        logger.info("Order cancelled", extra={"order_id": order_id, "reason": reason,
                                              "refunded": changes.get("payment_status") == "refunded"})
        return cancelled

    def get_order_tracking(self, order_id: str) -> Optional[OrderTracking]:
        with _operation("get order tracking"):
            order = self.repository.find_by_id(order_id)
        if order is None:
            return None

        if order.order_status == "cancelled":
            timeline = [
                TrackingStep(status="pending", label="Order placed", completed=True),
                TrackingStep(status="cancelled", label="Cancelled", completed=True),
            ]
            estimated_delivery = None
        else:
            reached = [status for status, _ in TRACKING_STEPS].index(order.order_status)
            timeline = [
                TrackingStep(status=status, label=label, completed=index <= reached)
                for index, (status, label) in enumerate(TRACKING_STEPS)
            ]
            estimated_delivery = None
            if order.order_status != "completed" and order.created_at:
                estimated_delivery = order.created_at + timedelta(days=self.delivery_days)

        return OrderTracking(
            order_id=order.id,
            order_status=order.order_status,
            payment_status=order.payment_status,
            tracking_number=order.tracking_number,
            created_at=order.created_at,
            updated_at=order.updated_at,
            estimated_delivery=estimated_delivery,
            timeline=timeline,
        )

    def process_payment(self, order_id: str, payment: ProcessPaymentRequest) -> Optional[PaymentResult]:
        """Payment stub: no gateway is called, the order is simply marked paid."""
        with _operation("process payment"):
            order = self.repository.find_by_id(order_id)
        if order is None:
            return None

        if order.order_status == "cancelled":
            raise PaymentError("Cannot process payment for a cancelled order")
        if order.payment_status == "paid":
            raise PaymentError("Order has already been paid")
        if payment.amount is not None and to_money(payment.amount) != to_money(order.total_amount):
            raise PaymentError(
                f"Payment amount {to_money(payment.amount)} does not match order total {to_money(order.total_amount)}"
            )

        changes = {"payment_status": "paid"}
        if order.order_status == "pending":
            changes["order_status"] = "processing"

        with _operation("process payment"):
            updated = self.repository.update(order_id, OrderUpdate(**changes))

        transaction_id = f"txn_{uuid.uuid4().hex[:16]}"
        logger.info("Payment recorded", extra={"order_id": order_id, "transaction_id": transaction_id,
                                               "payment_method": payment.payment_method})
        return PaymentResult(
            order_id=order_id,
            transaction_id=transaction_id,
            payment_method=payment.payment_method,
            payment_status="paid",
            amount=order.total_amount,
            processed_at=datetime.now(timezone.utc),
            order=updated,
        )

    def get_order_statistics(self, period: str = "30d") -> OrderStatistics:
        with _operation("get order statistics"):
            return self.repository.get_order_statistics(period)

    def delete_order(self, order_id: str) -> bool:
        with _operation("delete order"):
            deleted = self.repository.delete(order_id)
        if deleted:
            logger.info("Order deleted", extra={"order_id": order_id})
        return deleted
