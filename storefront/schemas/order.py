# storefront/schemas/order.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel

OrderStatus = Literal[
    "pending", "confirmed", "processing", "shipped", "delivered", "cancelled"
]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    order_number: str
    user_id: uuid.UUID
    status: OrderStatus
    status_label: str | None = None
    order_type: str
    customer_name: str
    customer_phone: str
    customer_email: str | None
    shipping_address: str
    shipping_city: str
    shipping_state: str
    shipping_postal_code: str
    shipping_method: str
    payment_method: str
    payment_status: PaymentStatus
    subtotal: float
    shipping_cost: float
    total_amount: float
    notes: str | None
    created_at: datetime


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.
    """

    id: uuid.UUID
    order_id: uuid.UUID
    product_id: uuid.UUID
    product_name: str | None
    product_sku: str | None
    quantity: int
    unit_price: float
    total_price: float
    price_type: str


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items.
    """

    items: list[OrderItemRead]


class OrderPage(SQLModel):
    items: list[OrderRead]
    total: int
    page: int
    limit: int
    total_pages: int


class OrderStats(SQLModel):
    total: int
    pending: int
    confirmed: int
    processing: int
    shipped: int
    delivered: int
    cancelled: int
    total_amount: float
    average_amount: float


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order status.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus


class ReorderResult(SQLModel):
    success: bool
    added: int
    failed: int
    message: str
