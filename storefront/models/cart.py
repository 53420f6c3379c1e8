# storefront/models/cart.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CartItem(SQLModel, table=True):
    """
    A signed-in customer's cart line (`cart_items`).

    Adding a product that is already in the cart bumps the quantity of the
    existing row, so (user_id, product_id) is unique. The unit price and
    price list are captured when the line is added.

    Guest carts are kept in the cart cookie and never reach this table.
    """

    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("user_id", "product_id"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    product_id: uuid.UUID = Field(foreign_key="products.id", index=True)

    # 1..MAX_PRODUCT_QUANTITY, enforced by CartService
    quantity: int = Field(gt=0)
    price: float = Field(description="Unit price when added (toman)")
    price_type: str = Field(default="retail", description="wholesale | retail")

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
