# storefront/services/product_service.py
import logging
import math
import uuid
from dataclasses import asdict, replace

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from storefront.core.cache import TTLCache, catalog_cache, make_cache_key
from storefront.core.constants import (
    CACHE_TTL,
    ERROR_MESSAGES,
    RELATED_PRODUCTS_LIMIT,
    SEARCH_MAX_RESULTS,
    SEARCH_MIN_LENGTH,
)
from storefront.models.product import Inventory, Product, ProductPrice
from storefront.models.user import User
from storefront.repositories.product_repo import ProductQuery, ProductRepository
from storefront.schemas.product import (
    BrandRead,
    CategoryProductsPage,
    CategoryRead,
    InventoryRead,
    PriceRead,
    PricingRead,
    ProductDetail,
    ProductPage,
    ProductRead,
)

logger = logging.getLogger(__name__)

PRODUCT_NOT_FOUND = "محصول یافت نشد"
CATEGORY_NOT_FOUND = "دسته‌بندی یافت نشد"
PRICE_NOT_FOUND = "قیمت محصول یافت نشد"


def price_type_for(user: User | None) -> str:
    """Wholesale list for b2b accounts, retail for b2c and guests."""
    if user is not None and user.user_type == "b2b":
        return "wholesale"
    return "retail"


def _page_meta(total: int, page: int, limit: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


class ProductService:
    """
    Read-only catalog access with a per-process cache in front of the DB.

    Responsibilities:
      - filtered / sorted / paginated product listings
      - choosing the viewer's price list (wholesale vs retail)
      - attaching prices and stock to product cards
      - caching every read for CACHE_TTL seconds, keyed by its parameters

    Cached values are response schemas, never ORM rows, so they are safe to
    hand out after the session that loaded them is gone.
    """

    def __init__(self, repo: ProductRepository, cache: TTLCache = catalog_cache):
        self.repo = repo
        self.cache = cache

    # ----- Helpers -----

    def _cached(self, kind: str, key: str, loader):
        hit = self.cache.get(key)
        if hit is not None:
            return hit
        try:
            value = loader()
        except SQLAlchemyError as exc:
            logger.error("Catalog read failed (%s): %s", key, exc)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=ERROR_MESSAGES["server"],
            )
        self.cache.set(key, value, CACHE_TTL[kind])
        return value

    def _to_reads(
        self,
        session: Session,
        products: list[Product],
        price_type: str,
    ) -> list[ProductRead]:
        """
        Build product cards, loading prices and inventory for the whole page
        in two queries.
        """
        ids = [p.id for p in products]
        prices: dict[uuid.UUID, list[ProductPrice]] = {}
        for row in self.repo.list_prices(session, ids):
            prices.setdefault(row.product_id, []).append(row)
        stock: dict[uuid.UUID, Inventory] = {
            row.product_id: row for row in self.repo.list_inventory(session, ids)
        }

        reads: list[ProductRead] = []
        for product in products:
            product_prices = prices.get(product.id, [])
            selected = next(
                (p for p in product_prices if p.price_type == price_type), None
            )
            inventory = stock.get(product.id)
            reads.append(
                ProductRead.model_validate(
                    product,
                    update={
                        "images": list(product.images or []),
                        "price": selected.price if selected else None,
                        "price_type": price_type,
                        "prices": [PriceRead.model_validate(p) for p in product_prices],
                        "inventory": (
                            InventoryRead.model_validate(inventory) if inventory else None
                        ),
                    },
                )
            )
        return reads

    def _page(
        self,
        session: Session,
        query: ProductQuery,
        page: int,
        limit: int,
    ) -> ProductPage:
        products, total = self.repo.search(
            session, query, skip=(page - 1) * limit, limit=limit
        )
        return ProductPage(
            items=self._to_reads(session, products, query.price_type),
            **_page_meta(total, page, limit),
        )

    # ----- Listings -----

    def list_products(
        self,
        session: Session,
        query: ProductQuery,
        page: int = 1,
        limit: int = 12,
    ) -> ProductPage:
        """
        Active products matching `query`, one page at a time.

        min/max price and price sorting apply to `query.price_type`.
        """
        key = make_cache_key("products", page=page, limit=limit, **asdict(query))
        return self._cached(
            "products", key, lambda: self._page(session, query, page, limit)
        )

    def list_category_products(
        self,
        session: Session,
        slug: str,
        query: ProductQuery,
        page: int = 1,
        limit: int = 12,
    ) -> CategoryProductsPage:
        """
        Category landing page: the category, its products (same filters as
        list_products), its sub-categories and the brands it carries.

        Raises:
            HTTPException(404): unknown or inactive category.
        """
        key = make_cache_key(
            "category_products", slug=slug, page=page, limit=limit, **asdict(query)
        )

        def load() -> CategoryProductsPage:
            category = self.repo.get_category_by_slug(session, slug)
            if category is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=CATEGORY_NOT_FOUND,
                )
            listing = self._page(
                session, replace(query, category_id=category.id), page, limit
            )
            return CategoryProductsPage(
                **listing.model_dump(exclude={"items"}),
                items=listing.items,
                category=CategoryRead.model_validate(category),
                subcategories=[
                    CategoryRead.model_validate(c)
                    for c in self.repo.list_subcategories(session, category.id)
                ],
                brands=[
                    BrandRead.model_validate(b)
                    for b in self.repo.list_brands_in_category(session, category.id)
                ],
            )

        return self._cached("products", key, load)

    def list_categories(self, session: Session) -> list[CategoryRead]:
        return self._cached(
            "categories",
            make_cache_key("categories"),
            lambda: [
                CategoryRead.model_validate(c) for c in self.repo.list_categories(session)
            ],
        )

    def list_brands(self, session: Session) -> list[BrandRead]:
        return self._cached(
            "brands",
            make_cache_key("brands"),
            lambda: [BrandRead.model_validate(b) for b in self.repo.list_brands(session)],
        )

    # ----- Single product -----

    def get_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        price_type: str = "retail",
    ) -> ProductDetail:
        """
        Product page: the product with all its prices and stock, plus up to
        RELATED_PRODUCTS_LIMIT other products from the same category.
        """
        key = make_cache_key("product", id=product_id, price_type=price_type)

        def load() -> ProductDetail:
            product = self.repo.get_active(session, product_id)
            if product is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=PRODUCT_NOT_FOUND,
                )
            related = self.repo.list_related(
                session, product, limit=RELATED_PRODUCTS_LIMIT
            )
            (card,) = self._to_reads(session, [product], price_type)
            return ProductDetail(
                **card.model_dump(exclude={"prices", "inventory"}),
                prices=card.prices,
                inventory=card.inventory,
                related=self._to_reads(session, related, price_type),
            )

        return self._cached("products", key, load)

    def get_pricing(
        self,
        session: Session,
        product_id: uuid.UUID,
        user_type: str | None,
    ) -> PricingRead:
        """
        Unit price of a product for an account type: wholesale for b2b,
        retail for everyone else.

        Raises:
            HTTPException(404): no active price of that type.
        """
        price_type = "wholesale" if user_type == "b2b" else "retail"
        key = make_cache_key("prices", id=product_id, price_type=price_type)

        def load() -> PricingRead:
            row = self.repo.get_price(session, product_id, price_type)
            if row is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=PRICE_NOT_FOUND,
                )
            return PricingRead(
                product_id=product_id,
                price=row.price,
                compare_price=row.compare_price,
                min_quantity=row.min_quantity,
                price_type=price_type,
            )

        return self._cached("prices", key, load)

    def get_inventory(self, session: Session, product_id: uuid.UUID) -> InventoryRead:
        def load() -> InventoryRead:
            row = self.repo.get_inventory(session, product_id)
            if row is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=PRODUCT_NOT_FOUND,
                )
            return InventoryRead.model_validate(row)

        return self._cached(
            "inventory", make_cache_key("inventory", id=product_id), load
        )

    # ----- Search & recommendations -----

    def search(
        self,
        session: Session,
        term: str,
        price_type: str = "retail",
    ) -> list[ProductRead]:
        """
        Free-text search over name and description.

        Queries shorter than SEARCH_MIN_LENGTH return nothing; results are
        capped at SEARCH_MAX_RESULTS.
        """
        term = term.strip()
        if len(term) < SEARCH_MIN_LENGTH:
            return []

        query = ProductQuery(search=term, price_type=price_type)
        key = make_cache_key("search", term=term, price_type=price_type)

        def load() -> list[ProductRead]:
            products, _ = self.repo.search(
                session, query, skip=0, limit=SEARCH_MAX_RESULTS
            )
            return self._to_reads(session, products, price_type)

        return self._cached("products", key, load)

    def recommended(
        self,
        session: Session,
        product_id: uuid.UUID | None = None,
        price_type: str = "retail",
        limit: int = RELATED_PRODUCTS_LIMIT,
    ) -> list[ProductRead]:
        """
        Related products of `product_id` when given, featured products
        otherwise.
        """
        key = make_cache_key(
            "recommended", id=product_id, price_type=price_type, limit=limit
        )

        def load() -> list[ProductRead]:
            product = (
                self.repo.get_active(session, product_id) if product_id else None
            )
            if product is not None:
                products = self.repo.list_related(session, product, limit=limit)
            else:
                products = self.repo.list_featured(session, limit=limit)
            return self._to_reads(session, products, price_type)

        return self._cached("products", key, load)
