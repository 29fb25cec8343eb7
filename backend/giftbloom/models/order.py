# backend/giftbloom/models/order.py

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime

OrderStatus = Literal["pending", "processing", "shipped", "completed", "cancelled"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]
PaymentMethod = Literal["credit_card", "paypal", "cash_on_delivery", "bank_transfer"]

ORDER_STATUSES = ("pending", "processing", "shipped", "completed", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")


# --- Value objects ---
class Address(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: Optional[str] = None
    postal_code: str = Field(..., min_length=1)
    country: str = "US"


class ProductSnapshot(BaseModel):
    """Denormalized product fields shown next to an order line."""
    id: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    image_url: Optional[str] = None


# --- Order Item Models ---
class OrderItem(BaseModel):
    id: str
    order_id: Optional[str] = None
    product_id: str
    quantity: int
    unit_price: float
    total_price: float
    product: Optional[ProductSnapshot] = None

    @property
    def formatted_total_price(self) -> str:
        return f"${self.total_price:.2f}"

    @property
    def has_consistent_total(self) -> bool:
        return round(self.quantity * self.unit_price, 2) == round(self.total_price, 2)


# --- Order Models ---
class Order(BaseModel):
    id: str
    user_id: Optional[str] = None
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    billing_address: Optional[Address] = None
    shipping_address: Optional[Address] = None
    payment_method: str
    payment_status: PaymentStatus = "pending"
    order_status: OrderStatus = "pending"
    notes: Optional[str] = None
    tracking_number: Optional[str] = None
    subtotal: float = 0.0
    tax_amount: float = 0.0
    shipping_cost: float = 0.0
    discount_amount: float = 0.0
    total_amount: float = 0.0
    items: List[OrderItem] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def formatted_total(self) -> str:
        return f"${self.total_amount:.2f}"

    @property
    def is_cancellable(self) -> bool:
        return self.order_status in ("pending", "processing")


# Payload handed to the repository: everything the two INSERTs need
class NewOrderItem(BaseModel):
    id: str
    product_id: str
    quantity: int
    unit_price: float
    total_price: float


class NewOrder(BaseModel):
    id: str
    user_id: Optional[str] = None
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    billing_address: Address
    shipping_address: Address
    payment_method: str
    payment_status: PaymentStatus = "pending"
    order_status: OrderStatus = "pending"
    notes: Optional[str] = None
    subtotal: float
    tax_amount: float
    shipping_cost: float
    discount_amount: float
    total_amount: float
    items: List[NewOrderItem]


class OrderUpdate(BaseModel):
    """Whitelisted mutable fields. Only explicitly set fields are written."""
    order_status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    notes: Optional[str] = None
    tracking_number: Optional[str] = None

    @field_validator("order_status", "payment_status")
    @classmethod
    def status_not_null(cls, value):
        if value is None:
            raise ValueError("status fields cannot be set to null")
        return value


class OrderFilters(BaseModel):
    status: Optional[OrderStatus] = None
    user_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: Optional[int] = Field(None, ge=1)
    limit: Optional[int] = Field(None, ge=1)


# --- Request schemas (one per route) ---
class OrderItemCreate(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    unit_price: Optional[float] = Field(None, ge=0)  # informational; the products table sets the price


class CreateOrderRequest(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    customer_phone: Optional[str] = Field(None, max_length=40)
    billing_address: Optional[Address] = None  # defaults to the shipping address
    shipping_address: Address
    payment_method: PaymentMethod = "credit_card"
    notes: Optional[str] = Field(None, max_length=1000)
    user_id: Optional[str] = None
    promo_code: Optional[str] = None
    items: List[OrderItemCreate] = Field(..., min_length=1)


class CalculateTotalsRequest(BaseModel):
    items: List[OrderItemCreate] = Field(..., min_length=1)
    shipping_address: Optional[Address] = None
    promo_code: Optional[str] = None


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    notes: Optional[str] = Field(None, max_length=1000)


class CancelOrderRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class ProcessPaymentRequest(BaseModel):
    payment_method: PaymentMethod
    amount: Optional[float] = Field(None, ge=0)
    card_last4: Optional[str] = Field(None, pattern=r"^\d{4}$")


# --- Computed responses ---
class OrderTotals(BaseModel):
    item_count: int
    subtotal: float
    tax_amount: float
    shipping_cost: float
    discount_amount: float
    total_amount: float
    promo_code: Optional[str] = None
    promo_code_valid: bool = False


class TrackingStep(BaseModel):
    status: str
    label: str
    completed: bool


class OrderTracking(BaseModel):
    order_id: str
    order_status: OrderStatus
    payment_status: PaymentStatus
    tracking_number: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    estimated_delivery: Optional[datetime] = None
    timeline: List[TrackingStep] = []


class PaymentResult(BaseModel):
    order_id: str
    transaction_id: str
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    amount: float
    processed_at: datetime
    order: Optional[Order] = None


class OrderStatistics(BaseModel):
    period: str
    total_orders: int = 0
    completed_orders: int = 0
    pending_orders: int = 0
    cancelled_orders: int = 0
    total_revenue: float = 0.0
    average_order_value: float = 0.0
