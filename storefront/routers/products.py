# storefront/routers/products.py
import uuid

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from storefront.core.auth import get_current_user
from storefront.core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, RELATED_PRODUCTS_LIMIT
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.product_repo import ProductQuery, ProductRepository
from storefront.schemas.product import (
    BrandRead,
    CategoryProductsPage,
    CategoryRead,
    InventoryRead,
    PricingRead,
    ProductDetail,
    ProductPage,
    ProductRead,
    SortBy,
    SortOrder,
)
from storefront.services.product_service import ProductService, price_type_for

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = ProductService(repo)


def product_filters(
    search: str | None = None,
    category_id: uuid.UUID | None = None,
    brand_id: uuid.UUID | None = None,
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    in_stock: bool = False,
    sort_by: SortBy = "created_at",
    sort_order: SortOrder = "desc",
    current_user: User | None = Depends(get_current_user),
) -> ProductQuery:
    """
    Listing filters from the query string. Price filters and price sorting
    follow the viewer's price list.
    """
    return ProductQuery(
        search=search.strip() if search and search.strip() else None,
        category_id=category_id,
        brand_id=brand_id,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        price_type=price_type_for(current_user),
        sort_by=sort_by,
        sort_order=sort_order,
    )


# -------- Public endpoints --------


@router.get("", response_model=ProductPage)
def list_products(
    query: ProductQuery = Depends(product_filters),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    session: Session = Depends(get_session),
):
    """
    List active products.

    - Public endpoint; signed-in wholesale accounts see wholesale prices.
    - Filters: search, category_id, brand_id, min_price, max_price, in_stock.
    - Sort: name | price | created_at, asc | desc.
    """
    return service.list_products(session, query, page=page, limit=limit)


@router.get("/search", response_model=list[ProductRead])
def search_products(
    q: str = "",
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_current_user),
):
    """
    Quick search box. Fewer than 2 characters returns an empty list.
    """
    return service.search(session, q, price_type=price_type_for(current_user))


@router.get("/recommended", response_model=list[ProductRead])
def recommended_products(
    product_id: uuid.UUID | None = None,
    limit: int = Query(default=RELATED_PRODUCTS_LIMIT, ge=1, le=20),
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_current_user),
):
    return service.recommended(
        session, product_id, price_type=price_type_for(current_user), limit=limit
    )


@router.get("/categories", response_model=list[CategoryRead])
def list_categories(session: Session = Depends(get_session)):
    return service.list_categories(session)


@router.get("/brands", response_model=list[BrandRead])
def list_brands(session: Session = Depends(get_session)):
    return service.list_brands(session)


@router.get("/category/{slug}", response_model=CategoryProductsPage)
def category_products(
    slug: str,
    query: ProductQuery = Depends(product_filters),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    session: Session = Depends(get_session),
):
    """
    Category page: products of the category plus its sub-categories and
    the brands it carries. 404 for unknown or inactive categories.
    """
    return service.list_category_products(session, slug, query, page=page, limit=limit)


@router.get("/{product_id}", response_model=ProductDetail)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_current_user),
):
    """
    Get a single active product with prices, stock and related products.
    """
    return service.get_product(
        session, product_id, price_type=price_type_for(current_user)
    )


@router.get("/{product_id}/pricing", response_model=PricingRead)
def get_pricing(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_current_user),
):
    """
    Price of the product for the viewer's account type.
    """
    user_type = current_user.user_type if current_user else None
    return service.get_pricing(session, product_id, user_type)


@router.get("/{product_id}/inventory", response_model=InventoryRead)
def get_inventory(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.get_inventory(session, product_id)
