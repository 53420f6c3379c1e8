# storefront/models/product.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Category(SQLModel, table=True):
    """
    Product category. Categories may be nested through parent_id.
    """

    __tablename__ = "categories"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    name: str = Field(max_length=100, index=True)
    slug: str = Field(max_length=255, unique=True, index=True)
    description: str | None = None
    image_url: str | None = None
    parent_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="categories.id",
        index=True,
    )
    sort_order: int = Field(default=0, ge=0)
    is_active: bool = Field(default=True, index=True)


class Brand(SQLModel, table=True):
    __tablename__ = "brands"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    name: str = Field(max_length=100, index=True)
    slug: str = Field(max_length=255, unique=True, index=True)
    logo_url: str | None = None
    description: str | None = None
    is_active: bool = Field(default=True, index=True)


class Product(SQLModel, table=True):
    """
    Catalog entry.

    Prices live in ProductPrice (one row per price list) and stock in
    Inventory, so a product row alone has no price.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    name: str = Field(
        max_length=255,
        index=True,
        description="Display name (Persian)",
    )

    slug: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    sku: str = Field(max_length=64, unique=True, index=True)

    description: str | None = None
    short_description: str | None = None

    category_id: uuid.UUID = Field(foreign_key="categories.id", index=True)
    brand_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="brands.id",
        index=True,
    )

    images: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list),
        description="Public image URLs, first one is the cover",
    )

    is_active: bool = Field(default=True, index=True)
    is_featured: bool = Field(default=False, index=True)
    sort_order: int = Field(default=0, ge=0)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class ProductPrice(SQLModel, table=True):
    """
    One row per (product, price list).

    price_type:
      - "wholesale": shown to b2b accounts
      - "retail"   : shown to b2c accounts and guests
    """

    __tablename__ = "product_prices"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    product_id: uuid.UUID = Field(foreign_key="products.id", index=True)
    price_type: str = Field(index=True, description="wholesale | retail")
    price: float = Field(gt=0, description="Unit price in IRR")
    compare_price: float | None = Field(default=None, gt=0)
    min_quantity: int = Field(default=1, ge=1)
    is_active: bool = Field(default=True)


class Inventory(SQLModel, table=True):
    __tablename__ = "inventory"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    product_id: uuid.UUID = Field(foreign_key="products.id", unique=True, index=True)
    quantity: int = Field(default=0, ge=0)
    reserved_quantity: int = Field(default=0, ge=0)
    low_stock_threshold: int = Field(default=5, ge=0)
    last_updated: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    @property
    def available_quantity(self) -> int:
        return max(self.quantity - self.reserved_quantity, 0)

    @property
    def is_in_stock(self) -> bool:
        return self.available_quantity > 0
