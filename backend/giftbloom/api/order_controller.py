# backend/giftbloom/api/order_controller.py

from fastapi import status
from fastapi.responses import JSONResponse

from giftbloom.models.order import (
    CalculateTotalsRequest, CancelOrderRequest, CreateOrderRequest, OrderFilters,
    ProcessPaymentRequest, UpdateOrderStatusRequest,
)
from giftbloom.services.order_service import OrderService


def order_not_found() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"success": False, "message": "Order not found"},
    )


class OrderController:
    """
    One method per endpoint, one service call per method.

    Errors are not caught here: they travel to the exception handlers
    registered in ``giftbloom.main``.
    """

    def __init__(self, service: OrderService):
        self.service = service

    def get_orders(self, filters: OrderFilters):
        orders, pagination = self.service.get_orders(filters)
        return {"success": True, "data": orders, "pagination": pagination}

    def get_order_by_id(self, order_id: str):
        order = self.service.get_order_by_id(order_id)
        if order is None:
            return order_not_found()
        return {"success": True, "data": order}

    def create_order(self, payload: CreateOrderRequest):
        order = self.service.create_order(payload)
        return {"success": True, "message": "Order created successfully", "data": order}

    def update_order_status(self, order_id: str, payload: UpdateOrderStatusRequest):
        order = self.service.update_order_status(order_id, payload.status, payload.notes)
        if order is None:
            return order_not_found()
        return {"success": True, "message": "Order status updated successfully", "data": order}

    def cancel_order(self, order_id: str, payload: CancelOrderRequest):
        order = self.service.cancel_order(order_id, payload.reason)
        if order is None:
            return order_not_found()
        return {"success": True, "message": "Order cancelled successfully", "data": order}

    def get_order_tracking(self, order_id: str):
        tracking = self.service.get_order_tracking(order_id)
        if tracking is None:
            return order_not_found()
        return {"success": True, "data": tracking}

    def process_payment(self, order_id: str, payload: ProcessPaymentRequest):
        result = self.service.process_payment(order_id, payload)
        if result is None:
            return order_not_found()
        return {"success": True, "message": "Payment processed successfully", "data": result}

    def calculate_order_totals(self, payload: CalculateTotalsRequest):
        totals = self.service.calculate_order_totals(payload.items, payload.shipping_address, payload.promo_code)
        return {"success": True, "data": totals}

    def get_order_statistics(self, period: str):
        statistics = self.service.get_order_statistics(period)
        return {"success": True, "data": statistics}

    def delete_order(self, order_id: str):
        if not self.service.delete_order(order_id):
            return order_not_found()
        return {"success": True, "message": "Order deleted successfully"}
