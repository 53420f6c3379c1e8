# storefront/services/order_service.py
import logging
import math
import random
import smtplib
import string
import time
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from storefront.core.constants import ORDER_STATUS_LABELS, SUCCESS_MESSAGES
from storefront.core.email_client import send_email
from storefront.models.cart import CartItem
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.checkout import CheckoutData
from storefront.schemas.order import (
    OrderItemRead,
    OrderPage,
    OrderRead,
    OrderStats,
    OrderStatusUpdate,
    OrderWithItemsRead,
    ReorderResult,
)
from storefront.services.cart_service import CartService, RemoteCartStore
from storefront.services.checkout_service import shipping_cost
from storefront.services.product_service import price_type_for

logger = logging.getLogger(__name__)

ORDER_NOT_FOUND = "سفارش یافت نشد"
CART_EMPTY = "سبد خرید خالی است"
ORDER_FAILED = "خطا در ایجاد سفارش"
ALREADY_CANCELLED = "سفارش قبلاً لغو شده است"
NOT_CANCELLABLE = "سفارش ارسال شده یا تحویل داده شده قابل لغو نیست"
NO_ITEMS = "آیتم‌های سفارش یافت نشد"

# Allowed admin transitions; delivered and cancelled are final.
STATUS_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"processing", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}

_ORDER_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_number() -> str:
    """MT + last 6 digits of the ms timestamp + 4 random [A-Z0-9]."""
    stamp = str(int(time.time() * 1000))[-6:]
    suffix = "".join(random.choices(_ORDER_CODE_ALPHABET, k=4))
    return f"MT{stamp}{suffix}"


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Create an order from the signed-in user's cart and checkout data
      - Validate cart lines against products and stock
      - Compute subtotal, shipping and total
      - Reserve inventory, release it again on cancellation
      - Clear the cart after success
      - Order history, stats and reorder
      - Enforce status transitions (admin)
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        cart_service: CartService,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.cart_service = cart_service

    # -------- Checkout --------

    def _unique_order_number(self, session: Session) -> str:
        number = generate_order_number()
        while self.order_repo.get_by_number(session, number) is not None:
            number = generate_order_number()
        return number

    def create_order_from_checkout(
        self,
        session: Session,
        user: User,
        data: CheckoutData,
    ) -> OrderWithItemsRead:
        """
        Convert the user's cart into an Order.

        Steps:
          1. Load cart rows; error if empty.
          2. For each row: product exists & is active, stock is available.
          3. subtotal = sum(quantity * price); shipping from the account
             type and shipping method; total = subtotal + shipping.
          4. Insert the Order (status='pending') and its OrderItems.
          5. Reserve inventory for every line.
          6. Delete the cart rows.
          7. Commit everything at once.
          8. Send the confirmation e-mail (failures are only logged).
        """
        # 1) Load cart
        cart_items: list[CartItem] = self.cart_repo.list_for_user(session, user.id)
        if not cart_items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=CART_EMPTY,
            )

        # 2) Validate each cart row vs product and stock
        errors: list[dict[str, str]] = []
        product_map: dict[uuid.UUID, Product] = {}

        for ci in cart_items:
            product = self.product_repo.get_active(session, ci.product_id)
            if product is None:
                errors.append(
                    {"product_id": str(ci.product_id), "reason": "محصول موجود نیست"}
                )
                continue
            product_map[ci.product_id] = product

            inventory = self.product_repo.get_inventory(session, ci.product_id)
            if inventory is not None and ci.quantity > inventory.available_quantity:
                errors.append(
                    {
                        "product_id": str(ci.product_id),
                        "reason": (
                            f"موجودی کافی نیست (موجود: {inventory.available_quantity}، "
                            f"درخواستی: {ci.quantity})"
                        ),
                    }
                )

        if errors:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "برخی از محصولات سبد خرید قابل سفارش نیستند", "items": errors},
            )

        # 3) Totals
        subtotal = sum(ci.quantity * ci.price for ci in cart_items)
        shipping = shipping_cost(user.user_type, data.shipping_method)

        try:
            # 4) Order + items
            order = Order(
                order_number=self._unique_order_number(session),
                user_id=user.id,
                status="pending",
                order_type=user.user_type,
                customer_name=f"{data.first_name} {data.last_name}".strip(),
                customer_phone=data.phone,
                customer_email=data.email or user.email,
                shipping_address=data.address,
                shipping_city=data.city,
                shipping_state=data.state,
                shipping_postal_code=data.postal_code,
                shipping_method=data.shipping_method,
                payment_method=data.payment_method,
                payment_status="pending",
                subtotal=subtotal,
                shipping_cost=shipping,
                total_amount=subtotal + shipping,
                notes=data.notes,
            )
            order = self.order_repo.create_order(session, order)

            order_items = self.order_repo.create_items(
                session,
                [
                    OrderItem(
                        order_id=order.id,
                        product_id=ci.product_id,
                        product_name=product_map[ci.product_id].name,
                        product_sku=product_map[ci.product_id].sku,
                        quantity=ci.quantity,
                        unit_price=ci.price,
                        total_price=ci.quantity * ci.price,
                        price_type=ci.price_type,
                    )
                    for ci in cart_items
                ],
            )

            # 5) Reserve stock
            for ci in cart_items:
                self._adjust_reservation(session, ci.product_id, ci.quantity)

            # 6) Clear cart
            self.cart_repo.stage_clear(session, user.id)

            # 7) Commit transaction
            session.commit()
            session.refresh(order)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Order creation failed for user %s: %s", user.id, exc)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=ORDER_FAILED,
            )

        logger.info("Order %s created for user %s", order.order_number, user.id)

        # 8) Confirmation e-mail
        self._send_confirmation(order)

        return self._build_order_with_items_dto(order, order_items)

    def _adjust_reservation(
        self,
        session: Session,
        product_id: uuid.UUID,
        delta: int,
    ) -> None:
        """Reserve (delta > 0) or release (delta < 0) stock; no row, no-op."""
        inventory = self.product_repo.get_inventory(session, product_id)
        if inventory is None:
            return
        inventory.reserved_quantity = max(inventory.reserved_quantity + delta, 0)
        inventory.last_updated = datetime.now(timezone.utc)
        self.product_repo.update_inventory(session, inventory)

    def _send_confirmation(self, order: Order) -> None:
        if not order.customer_email:
            return
        lines = [
            f"{order.customer_name} عزیز،",
            "",
            SUCCESS_MESSAGES["order_created"],
            f"شماره سفارش: {order.order_number}",
            f"مبلغ کل: {order.total_amount:,.0f} تومان",
            f"وضعیت: {ORDER_STATUS_LABELS[order.status]}",
        ]
        try:
            send_email(
                to_email=order.customer_email,
                subject=f"تایید سفارش {order.order_number}",
                text_body="\n".join(lines),
            )
        except (RuntimeError, smtplib.SMTPException, OSError) as exc:
            logger.warning(
                "Confirmation e-mail for order %s not sent: %s", order.order_number, exc
            )

    # -------- History --------

    def list_user_orders(
        self,
        session: Session,
        user_id: uuid.UUID,
        status_filter: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> OrderPage:
        """
        The user's orders, newest first, without items.

        `search` matches the order id, order number or shipping address.
        """
        orders, total = self.order_repo.list_for_user(
            session,
            user_id,
            status=status_filter,
            date_from=date_from,
            date_to=date_to,
            search=search.strip() if search else None,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return OrderPage(
            items=[self._to_read(o) for o in orders],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if limit else 0,
        )

    def _get_owned(self, session: Session, user_id: uuid.UUID, order_id: uuid.UUID) -> Order:
        order = self.order_repo.get_by_id(session, order_id)
        if not order or order.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=ORDER_NOT_FOUND,
            )
        return order

    def get_user_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
    ) -> OrderWithItemsRead:
        """
        Get a single order for the user, including items.

        - 404 if order not found or does not belong to this user.
        """
        order = self._get_owned(session, user_id, order_id)
        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_with_items_dto(order, items)

    def order_stats(self, session: Session, user_id: uuid.UUID) -> OrderStats:
        orders = self.order_repo.list_all_for_user(session, user_id)
        counts = {key: 0 for key in STATUS_TRANSITIONS}
        for o in orders:
            counts[o.status] = counts.get(o.status, 0) + 1
        total_amount = sum(o.total_amount for o in orders)
        return OrderStats(
            total=len(orders),
            **counts,
            total_amount=total_amount,
            average_amount=total_amount / len(orders) if orders else 0,
        )

    # -------- Customer actions --------

    def cancel_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
    ) -> OrderRead:
        """
        Cancel one of the user's orders and release its reserved stock.

        Cancelled, shipped and delivered orders are refused with 400.
        """
        order = self._get_owned(session, user_id, order_id)

        if order.status == "cancelled":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=ALREADY_CANCELLED,
            )
        if order.status in ("shipped", "delivered"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=NOT_CANCELLABLE,
            )

        return self._cancel(session, order)

    def _cancel(self, session: Session, order: Order) -> OrderRead:
        try:
            for item in self.order_repo.list_items_for_order(session, order.id):
                self._adjust_reservation(session, item.product_id, -item.quantity)
            order.status = "cancelled"
            order.updated_at = datetime.now(timezone.utc)
            self.order_repo.update_order(session, order)
            session.commit()
            session.refresh(order)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Cancelling order %s failed: %s", order.id, exc)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="خطا در لغو سفارش",
            )
        logger.info("Order %s cancelled", order.order_number)
        return self._to_read(order)

    def reorder(
        self,
        session: Session,
        user: User,
        order_id: uuid.UUID,
    ) -> ReorderResult:
        """
        Put every item of a past order back into the cart, at today's
        prices. Reports how many lines were added and how many failed.
        """
        order = self._get_owned(session, user.id, order_id)
        items = self.order_repo.list_items_for_order(session, order.id)
        if not items:
            return ReorderResult(success=False, added=0, failed=0, message=NO_ITEMS)

        store = RemoteCartStore(session, user.id, self.cart_repo)
        price_type = price_type_for(user)
        failed = 0
        for item in items:
            result = self.cart_service.add_item(
                session, store, item.product_id, item.quantity, price_type
            )
            if not result.success:
                failed += 1

        added = len(items) - failed
        if failed == 0:
            return ReorderResult(
                success=True,
                added=added,
                failed=0,
                message="تمام آیتم‌ها به سبد خرید اضافه شدند",
            )
        return ReorderResult(
            success=False,
            added=added,
            failed=failed,
            message=f"{failed} آیتم اضافه نشد",
        )

    # -------- Admin operations --------

    def update_status(
        self,
        session: Session,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
    ) -> OrderRead:
        """
        Admin-only status update:

          pending    -> confirmed, cancelled
          confirmed  -> processing, cancelled
          processing -> shipped, cancelled
          shipped    -> delivered

        Any other transition raises 400. Cancelling releases reserved stock.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=ORDER_NOT_FOUND,
            )

        current = order.status
        new = payload.status

        if current == new:
            return self._to_read(order)

        if new not in STATUS_TRANSITIONS.get(current, set()):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=(
                    f"تغییر وضعیت از «{ORDER_STATUS_LABELS[current]}» به "
                    f"«{ORDER_STATUS_LABELS[new]}» مجاز نیست"
                ),
            )

        if new == "cancelled":
            return self._cancel(session, order)

        order.status = new
        order.updated_at = datetime.now(timezone.utc)
        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)
        logger.info("Order %s moved %s -> %s", order.order_number, current, new)
        return self._to_read(order)

    # -------- Helper DTO builders --------

    @staticmethod
    def _to_read(order: Order) -> OrderRead:
        return OrderRead.model_validate(
            order, update={"status_label": ORDER_STATUS_LABELS.get(order.status)}
        )

    def _build_order_with_items_dto(
        self,
        order: Order,
        items: list[OrderItem],
    ) -> OrderWithItemsRead:
        """
        Compose OrderWithItemsRead from ORM models.
        """
        return OrderWithItemsRead.model_validate(
            order,
            update={
                "status_label": ORDER_STATUS_LABELS.get(order.status),
                "items": [OrderItemRead.model_validate(it) for it in items],
            },
        )
