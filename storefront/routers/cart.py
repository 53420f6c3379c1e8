# storefront/routers/cart.py
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlmodel import Session

from storefront.core.auth import get_current_user
from storefront.core.constants import CART_COOKIE
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import (
    CartItemCreate,
    CartItemStatus,
    CartItemUpdate,
    CartPreview,
    CartResult,
    CartSummary,
)
from storefront.services.cart_service import CartService, CartStore, GuestCartStore
from storefront.services.product_service import price_type_for

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(cart_repo, product_repo)

GUEST_CART_MAX_AGE = 30 * 24 * 60 * 60


def get_cart_store(
    request: Request,
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_current_user),
) -> CartStore:
    """
    Guests get the cart held in the cart cookie, signed-in users their
    server-side rows.
    """
    return service.open_store(session, current_user, request.cookies.get(CART_COOKIE))


def persist_guest_cart(store: CartStore, response: Response) -> None:
    """Write a changed guest cart back to its cookie (or erase it)."""
    if not isinstance(store, GuestCartStore) or not store.changed:
        return
    value = store.to_cookie()
    if value is None:
        response.delete_cookie(CART_COOKIE)
    else:
        response.set_cookie(
            CART_COOKIE,
            value,
            max_age=GUEST_CART_MAX_AGE,
            httponly=True,
            samesite="lax",
        )


def _finish(result: CartResult, store: CartStore, response: Response) -> CartResult:
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.error,
        )
    persist_guest_cart(store, response)
    return result


@router.get("", response_model=CartSummary)
def get_my_cart(
    response: Response,
    session: Session = Depends(get_session),
    store: CartStore = Depends(get_cart_store),
):
    """
    Current cart with totals. Works for guests and signed-in users.
    """
    cart = service.load(session, store)
    persist_guest_cart(store, response)
    return cart


@router.get("/preview", response_model=CartPreview)
def cart_preview(
    session: Session = Depends(get_session),
    store: CartStore = Depends(get_cart_store),
):
    """Item count, total and the first 3 lines (header mini-cart)."""
    return service.summary(session, store)


@router.post("/items", response_model=CartResult)
def add_to_cart(
    payload: CartItemCreate,
    response: Response,
    session: Session = Depends(get_session),
    store: CartStore = Depends(get_cart_store),
    current_user: User | None = Depends(get_current_user),
):
    """
    Add a product to the cart at the viewer's price.

    Returns the updated cart; 400 with the reason when rejected.
    """
    result = service.add_item(
        session,
        store,
        payload.product_id,
        payload.quantity,
        price_type=price_type_for(current_user),
    )
    return _finish(result, store, response)


@router.patch("/items/{item_id}", response_model=CartResult)
def update_cart_item(
    item_id: str,
    payload: CartItemUpdate,
    response: Response,
    session: Session = Depends(get_session),
    store: CartStore = Depends(get_cart_store),
):
    """
    Set the quantity of a cart line. Zero or less removes it.
    """
    result = service.update_quantity(session, store, item_id, payload.quantity)
    return _finish(result, store, response)


@router.delete("/items/{item_id}", response_model=CartResult)
def remove_cart_item(
    item_id: str,
    response: Response,
    session: Session = Depends(get_session),
    store: CartStore = Depends(get_cart_store),
):
    result = service.remove_item(session, store, item_id)
    return _finish(result, store, response)


@router.delete("", response_model=CartResult)
def clear_cart(
    response: Response,
    session: Session = Depends(get_session),
    store: CartStore = Depends(get_cart_store),
):
    """
    Clear the entire cart. Guests also lose the cart cookie.
    """
    result = service.clear(session, store)
    return _finish(result, store, response)


# -------- Per-product helpers (product cards) --------


@router.get("/products/{product_id}", response_model=CartItemStatus)
def cart_item_status(
    product_id: uuid.UUID,
    store: CartStore = Depends(get_cart_store),
):
    return service.item_status(store, product_id)


@router.post("/products/{product_id}/increment", response_model=CartResult)
def increment_item(
    product_id: uuid.UUID,
    response: Response,
    session: Session = Depends(get_session),
    store: CartStore = Depends(get_cart_store),
):
    result = service.increment(session, store, product_id)
    return _finish(result, store, response)


@router.post("/products/{product_id}/decrement", response_model=CartResult)
def decrement_item(
    product_id: uuid.UUID,
    response: Response,
    session: Session = Depends(get_session),
    store: CartStore = Depends(get_cart_store),
):
    """One unit less; removes the line at quantity 1."""
    result = service.decrement(session, store, product_id)
    return _finish(result, store, response)
