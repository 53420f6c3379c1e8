# storefront/repositories/product_repo.py
import uuid
from dataclasses import dataclass

from sqlalchemy import and_, func
from sqlmodel import Session, col, select

from storefront.models.product import Brand, Category, Inventory, Product, ProductPrice


@dataclass
class ProductQuery:
    """
    Filters accepted by the product listing pages.

    price_type selects which price list min/max_price and sort_by="price"
    apply to.
    """

    search: str | None = None
    category_id: uuid.UUID | None = None
    brand_id: uuid.UUID | None = None
    min_price: float | None = None
    max_price: float | None = None
    in_stock: bool = False
    price_type: str = "retail"
    sort_by: str = "created_at"
    sort_order: str = "desc"


SORT_COLUMNS = {
    "name": Product.name,
    "created_at": Product.created_at,
    "price": ProductPrice.price,
}


class ProductRepository:
    """
    Data access layer for the catalog tables.

    - Pure DB operations (queries only; the storefront never writes the
      catalog).
    - No FastAPI, no business logic.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_active(self, session: Session, product_id: uuid.UUID) -> Product | None:
        stmt = select(Product).where(
            Product.id == product_id,
            Product.is_active == True,  # noqa: E712
        )
        return session.exec(stmt).first()

    def search(
        self,
        session: Session,
        query: ProductQuery,
        skip: int = 0,
        limit: int = 12,
    ) -> tuple[list[Product], int]:
        """
        Filtered, sorted, paginated product listing.

        Returns:
            (products on this page, total matching rows)
        """
        stmt = select(Product).where(Product.is_active == True)  # noqa: E712

        if query.search:
            # autoescape: % and _ typed by the customer match literally
            stmt = stmt.where(
                col(Product.name).icontains(query.search, autoescape=True)
                | col(Product.description).icontains(query.search, autoescape=True)
            )

        if query.category_id:
            stmt = stmt.where(Product.category_id == query.category_id)

        if query.brand_id:
            stmt = stmt.where(Product.brand_id == query.brand_id)

        needs_price = (
            query.min_price is not None
            or query.max_price is not None
            or query.sort_by == "price"
        )
        if needs_price:
            stmt = stmt.outerjoin(
                ProductPrice,
                and_(
                    ProductPrice.product_id == Product.id,
                    ProductPrice.price_type == query.price_type,
                    ProductPrice.is_active == True,  # noqa: E712
                ),
            )
            if query.min_price is not None:
                stmt = stmt.where(ProductPrice.price >= query.min_price)
            if query.max_price is not None:
                stmt = stmt.where(ProductPrice.price <= query.max_price)

        if query.in_stock:
            stmt = stmt.join(Inventory, Inventory.product_id == Product.id).where(
                Inventory.quantity - Inventory.reserved_quantity > 0
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = int(session.exec(count_stmt).one() or 0)

        sort_column = SORT_COLUMNS.get(query.sort_by, Product.created_at)
        ordering = sort_column.asc() if query.sort_order == "asc" else sort_column.desc()
        stmt = stmt.order_by(ordering, Product.name).offset(skip).limit(limit)

        return list(session.exec(stmt).all()), total

    def list_related(
        self,
        session: Session,
        product: Product,
        limit: int = 4,
    ) -> list[Product]:
        """Other active products of the same category."""
        stmt = (
            select(Product)
            .where(
                Product.category_id == product.category_id,
                Product.id != product.id,
                Product.is_active == True,  # noqa: E712
            )
            .order_by(Product.sort_order, Product.name)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def list_featured(self, session: Session, limit: int = 4) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.is_active == True)  # noqa: E712
            .order_by(col(Product.is_featured).desc(), Product.sort_order, Product.name)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    # ----- Prices & inventory -----

    def list_prices(
        self,
        session: Session,
        product_ids: list[uuid.UUID],
    ) -> list[ProductPrice]:
        if not product_ids:
            return []
        stmt = select(ProductPrice).where(
            col(ProductPrice.product_id).in_(product_ids),
            ProductPrice.is_active == True,  # noqa: E712
        )
        return list(session.exec(stmt).all())

    def get_price(
        self,
        session: Session,
        product_id: uuid.UUID,
        price_type: str,
    ) -> ProductPrice | None:
        stmt = select(ProductPrice).where(
            ProductPrice.product_id == product_id,
            ProductPrice.price_type == price_type,
            ProductPrice.is_active == True,  # noqa: E712
        )
        return session.exec(stmt).first()

    def list_inventory(
        self,
        session: Session,
        product_ids: list[uuid.UUID],
    ) -> list[Inventory]:
        if not product_ids:
            return []
        stmt = select(Inventory).where(col(Inventory.product_id).in_(product_ids))
        return list(session.exec(stmt).all())

    def get_inventory(self, session: Session, product_id: uuid.UUID) -> Inventory | None:
        stmt = select(Inventory).where(Inventory.product_id == product_id)
        return session.exec(stmt).first()

    def update_inventory(self, session: Session, inventory: Inventory) -> Inventory:
        """Stage an inventory change; the caller owns the commit."""
        session.add(inventory)
        session.flush()
        return inventory

    # ----- Categories -----

    def list_categories(self, session: Session) -> list[Category]:
        stmt = (
            select(Category)
            .where(Category.is_active == True)  # noqa: E712
            .order_by(Category.name)
        )
        return list(session.exec(stmt).all())

    def get_category_by_slug(self, session: Session, slug: str) -> Category | None:
        stmt = select(Category).where(
            Category.slug == slug,
            Category.is_active == True,  # noqa: E712
        )
        return session.exec(stmt).first()

    def list_subcategories(
        self,
        session: Session,
        parent_id: uuid.UUID,
    ) -> list[Category]:
        stmt = (
            select(Category)
            .where(
                Category.parent_id == parent_id,
                Category.is_active == True,  # noqa: E712
            )
            .order_by(Category.name)
        )
        return list(session.exec(stmt).all())

    # ----- Brands -----

    def list_brands(self, session: Session) -> list[Brand]:
        stmt = (
            select(Brand)
            .where(Brand.is_active == True)  # noqa: E712
            .order_by(Brand.name)
        )
        return list(session.exec(stmt).all())

    def list_brands_in_category(
        self,
        session: Session,
        category_id: uuid.UUID,
    ) -> list[Brand]:
        stmt = (
            select(Brand)
            .join(Product, Product.brand_id == Brand.id)
            .where(
                Product.category_id == category_id,
                Product.is_active == True,  # noqa: E712
                Brand.is_active == True,  # noqa: E712
            )
            .distinct()
            .order_by(Brand.name)
        )
        return list(session.exec(stmt).all())
