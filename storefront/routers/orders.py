# storefront/routers/orders.py
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from storefront.core.auth import require_admin, require_auth
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.checkout import CheckoutData
from storefront.schemas.order import (
    OrderPage,
    OrderRead,
    OrderStats,
    OrderStatus,
    OrderStatusUpdate,
    OrderWithItemsRead,
    ReorderResult,
)
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import LAST_STEP, CheckoutForm
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
cart_repo = CartRepository()
product_repo = ProductRepository()
service = OrderService(
    order_repo,
    cart_repo,
    product_repo,
    CartService(cart_repo, product_repo),
)


# -------- User-facing endpoints --------


@router.post(
    "/checkout",
    response_model=OrderWithItemsRead,
    status_code=status.HTTP_201_CREATED,
)
def checkout(
    payload: CheckoutData,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Create an order from the current user's cart.

    The whole wizard payload is validated again (all three steps) before
    anything is written.
    """
    form = CheckoutForm(payload, user_type=current_user.user_type, step=LAST_STEP)
    data = form.submit()
    return service.create_order_from_checkout(session, current_user, data)


@router.get("/me", response_model=OrderPage)
def list_my_orders(
    status_filter: OrderStatus | None = Query(default=None, alias="status"),
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    List the authenticated user's orders (without items), newest first.
    """
    return service.list_user_orders(
        session,
        current_user.id,
        status_filter=status_filter,
        date_from=date_from,
        date_to=date_to,
        search=search,
        page=page,
        limit=limit,
    )


@router.get("/me/stats", response_model=OrderStats)
def my_order_stats(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.order_stats(session, current_user.id)


@router.get("/me/{order_id}", response_model=OrderWithItemsRead)
def get_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Get a single order (with items) belonging to the current user.
    """
    return service.get_user_order(session, current_user.id, order_id)


@router.post("/me/{order_id}/cancel", response_model=OrderRead)
def cancel_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Cancel an order that has not shipped yet.
    """
    return service.cancel_order(session, current_user.id, order_id)


@router.post("/me/{order_id}/reorder", response_model=ReorderResult)
def reorder(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Add every item of a past order to the cart again.
    """
    return service.reorder(session, current_user, order_id)


# -------- Admin endpoints --------


@router.patch(
    "/{order_id}/status",
    response_model=OrderRead,
    dependencies=[Depends(require_admin)],
)
def change_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Update order status (admin only).
    """
    return service.update_status(session, order_id, payload)
