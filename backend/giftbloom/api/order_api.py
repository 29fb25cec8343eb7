# backend/giftbloom/api/order_api.py

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from giftbloom.api.order_controller import OrderController
from giftbloom.dependencies import get_order_controller
from giftbloom.models.order import (
    CalculateTotalsRequest, CancelOrderRequest, CreateOrderRequest, OrderFilters, OrderStatus,
    ProcessPaymentRequest, UpdateOrderStatusRequest,
)

# Handlers are plain `def`: the repository is blocking, so FastAPI runs them in its threadpool
router = APIRouter(prefix="/orders", tags=["Orders"])


# --- Public routes ---
@router.post("", status_code=status.HTTP_201_CREATED)
def create_order_api(payload: CreateOrderRequest, controller: OrderController = Depends(get_order_controller)):
    return controller.create_order(payload)


@router.post("/calculate-totals")
def calculate_order_totals_api(payload: CalculateTotalsRequest,
                               controller: OrderController = Depends(get_order_controller)):
    return controller.calculate_order_totals(payload)


@router.get("/{order_id}/tracking")
def get_order_tracking_api(order_id: str, controller: OrderController = Depends(get_order_controller)):
    return controller.get_order_tracking(order_id)


# --- Admin routes (no authentication layer in this service) ---
@router.get("")
def get_orders_api(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    user_id: Optional[str] = Query(None, alias="userId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    controller: OrderController = Depends(get_order_controller),
):
    filters = OrderFilters(
        status=order_status, user_id=user_id, start_date=start_date, end_date=end_date, page=page, limit=limit
    )
    return controller.get_orders(filters)


# Declared before /{order_id} so "statistics" is not taken for an id
@router.get("/statistics")
def get_order_statistics_api(period: str = Query("30d", pattern=r"^\d+d$"),
                             controller: OrderController = Depends(get_order_controller)):
    return controller.get_order_statistics(period)


@router.get("/{order_id}")
def get_order_api(order_id: str, controller: OrderController = Depends(get_order_controller)):
    return controller.get_order_by_id(order_id)


@router.patch("/{order_id}/status")
def update_order_status_api(order_id: str, payload: UpdateOrderStatusRequest,
                            controller: OrderController = Depends(get_order_controller)):
    return controller.update_order_status(order_id, payload)


@router.patch("/{order_id}/cancel")
def cancel_order_api(order_id: str, payload: Optional[CancelOrderRequest] = None,
                     controller: OrderController = Depends(get_order_controller)):
    return controller.cancel_order(order_id, payload or CancelOrderRequest())


@router.post("/{order_id}/payment")
def process_payment_api(order_id: str, payload: ProcessPaymentRequest,
                        controller: OrderController = Depends(get_order_controller)):
    return controller.process_payment(order_id, payload)


@router.delete("/{order_id}")
def delete_order_api(order_id: str, controller: OrderController = Depends(get_order_controller)):
    return controller.delete_order(order_id)
