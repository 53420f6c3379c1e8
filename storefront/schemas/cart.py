# storefront/schemas/cart.py
import uuid
from datetime import datetime

from sqlmodel import SQLModel, Field


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.

    The unit price is never taken from the client; it is resolved from the
    viewer's price list.
    """

    product_id: uuid.UUID
    quantity: int = Field(default=1, gt=0)


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart item.
    Zero or negative removes the line.
    """

    quantity: int


class CartLine(SQLModel):
    """
    One cart line, guest or signed-in.

    Guest lines carry `user_id="guest"` and an id like `temp_1718000000000`;
    server lines carry the row UUID.
    """

    id: str
    user_id: str
    product_id: uuid.UUID
    quantity: int
    price: float
    price_type: str = "retail"
    product_name: str | None = None
    product_image: str | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def line_total(self) -> float:
        return self.quantity * self.price


class CartSummary(SQLModel):
    """
    Full cart response model with derived totals.
    """

    items: list[CartLine]
    total_items: int
    total_amount: float
    is_guest: bool


class CartResult(SQLModel):
    """
    Outcome of a cart mutation. Mutations report failures here instead of
    raising, so the cart is returned unchanged alongside the error.
    """

    success: bool
    error: str | None = None
    cart: CartSummary | None = None


class CartPreview(SQLModel):
    item_count: int
    total_amount: float
    is_empty: bool
    items: list[CartLine]


class CartItemStatus(SQLModel):
    product_id: uuid.UUID
    in_cart: bool
    quantity: int
    cart_item_id: str | None = None
