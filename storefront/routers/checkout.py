# storefront/routers/checkout.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.core.auth import get_current_user
from storefront.database import get_session
from storefront.models.user import User
from storefront.routers.cart import get_cart_store, service as cart_service
from storefront.schemas.checkout import (
    CheckoutData,
    CheckoutQuote,
    CheckoutQuoteRequest,
    StepValidationRequest,
    StepValidationResult,
)
from storefront.services.cart_service import CartStore
from storefront.services.checkout_service import CheckoutForm, quote

router = APIRouter(prefix="/checkout", tags=["Checkout"])


@router.post("/validate", response_model=StepValidationResult)
def validate_step(
    payload: StepValidationRequest,
    current_user: User | None = Depends(get_current_user),
):
    """
    Validate one wizard step.

    Returns per-field Persian errors and the step the wizard should show
    next (the same step while invalid).
    """
    data = CheckoutData.model_validate(payload.model_dump(exclude={"step"}))
    form = CheckoutForm(
        data,
        user_type=current_user.user_type if current_user else None,
        step=payload.step,
    )
    errors = form.advance()
    return StepValidationResult(
        step=payload.step,
        valid=not errors,
        errors=errors,
        next_step=form.step,
    )


@router.post("/quote", response_model=CheckoutQuote)
def checkout_quote(
    payload: CheckoutQuoteRequest,
    session: Session = Depends(get_session),
    store: CartStore = Depends(get_cart_store),
    current_user: User | None = Depends(get_current_user),
):
    """
    Shipping cost, final total and allowed payment methods for the
    viewer's account type. The subtotal defaults to the current cart.
    """
    subtotal = payload.subtotal
    if subtotal is None:
        subtotal = cart_service.load(session, store).total_amount
    user_type = current_user.user_type if current_user else None
    return quote(user_type, payload.shipping_method, subtotal)
