# storefront/models/order.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order: a snapshot of the cart plus shipping and payment
    choices at submission time.
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_number: str = Field(
        unique=True,
        index=True,
        description="Human-facing code, e.g. MT123456AB12",
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    # pending | confirmed | processing | shipped | delivered | cancelled
    status: str = Field(
        default="pending",
        index=True,
        description="Order status lifecycle",
    )

    # b2b | b2c, copied from the account at checkout
    order_type: str = Field(default="b2c")

    customer_name: str
    customer_phone: str
    customer_email: str | None = None

    shipping_address: str
    shipping_city: str
    shipping_state: str
    shipping_postal_code: str

    # standard | express | pickup
    shipping_method: str
    # online | cash | transfer
    payment_method: str
    # pending | paid | failed | refunded
    payment_status: str = Field(default="pending")

    subtotal: float = Field(ge=0)
    shipping_cost: float = Field(default=0, ge=0)
    total_amount: float = Field(
        ge=0,
        description="subtotal + shipping_cost",
    )

    notes: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order. Product name and SKU are snapshotted so the
    order history survives catalog changes.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    product_name: str | None = None
    product_sku: str | None = None

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )

    unit_price: float = Field(description="Unit price at time of order")
    total_price: float
    price_type: str = Field(default="retail")
