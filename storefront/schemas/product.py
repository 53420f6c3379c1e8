# storefront/schemas/product.py
import uuid
from datetime import datetime
from typing import Literal

from sqlmodel import SQLModel

PriceType = Literal["wholesale", "retail"]
SortBy = Literal["name", "price", "created_at"]
SortOrder = Literal["asc", "desc"]


class CategoryRead(SQLModel):
    id: uuid.UUID
    name: str
    slug: str
    description: str | None = None
    image_url: str | None = None
    parent_id: uuid.UUID | None = None
    sort_order: int = 0


class BrandRead(SQLModel):
    id: uuid.UUID
    name: str
    slug: str
    logo_url: str | None = None
    description: str | None = None


class PriceRead(SQLModel):
    price_type: PriceType
    price: float
    compare_price: float | None = None
    min_quantity: int = 1


class InventoryRead(SQLModel):
    quantity: int
    reserved_quantity: int
    available_quantity: int
    is_in_stock: bool


class ProductRead(SQLModel):
    """
    Product card / listing representation.

    `price` is the unit price of the viewer's price list (retail for guests
    and b2c accounts, wholesale for b2b) or None when that list has no row.
    """

    id: uuid.UUID
    name: str
    slug: str
    sku: str
    description: str | None = None
    short_description: str | None = None
    category_id: uuid.UUID
    brand_id: uuid.UUID | None = None
    images: list[str] = []
    is_featured: bool = False
    created_at: datetime
    price: float | None = None
    price_type: PriceType = "retail"
    prices: list[PriceRead] = []
    inventory: InventoryRead | None = None


class ProductDetail(ProductRead):
    related: list[ProductRead] = []


class ProductPage(SQLModel):
    items: list[ProductRead]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool


class CategoryProductsPage(ProductPage):
    category: CategoryRead
    subcategories: list[CategoryRead]
    brands: list[BrandRead]


class PricingRead(SQLModel):
    """
    Price of one product for a given account type.
    """

    product_id: uuid.UUID
    price: float
    compare_price: float | None = None
    min_quantity: int
    price_type: PriceType
