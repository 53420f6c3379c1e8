# storefront/routers/auth.py
from fastapi import APIRouter, Depends, Request, Response, status
from sqlmodel import Session

from storefront.core.auth import get_access_token, get_current_user, require_auth
from storefront.core.constants import (
    CART_COOKIE,
    REMEMBER_EMAIL_COOKIE,
    REMEMBER_EMAIL_MAX_AGE,
    SUCCESS_MESSAGES,
)
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.routers.cart import service as cart_service
from storefront.schemas.auth import (
    LoginRequest,
    MessageRead,
    PasswordChangeRequest,
    PasswordResetRequest,
    RefreshRequest,
    RegisterRequest,
    RememberedEmail,
    SessionRead,
)
from storefront.schemas.user import AuthState
from storefront.services.auth_service import AuthService
from storefront.services.cart_service import GuestCartStore
from storefront.services.product_service import price_type_for
from storefront.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Auth"])

repo = UserRepository()
service = AuthService(repo)
user_service = UserService(repo)


def _merge_guest_cart(
    request: Request,
    response: Response,
    session: Session,
    result: SessionRead,
) -> None:
    """Move the guest cart cookie into the freshly signed-in user's cart."""
    raw = request.cookies.get(CART_COOKIE)
    if not raw or result.user is None:
        return
    user = repo.get_by_id(session, result.user.id)
    if user is not None:
        cart_service.merge_guest_cart(
            session, user, GuestCartStore(raw), price_type=price_type_for(user)
        )
    response.delete_cookie(CART_COOKIE)


@router.post("/login", response_model=SessionRead)
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
):
    """
    Sign in with email and password.

    - `remember=true` keeps the email in a cookie for the login form.
    - A guest cart held in the cart cookie is merged into the account.
    """
    result = service.sign_in(session, payload.email, payload.password)

    if payload.remember:
        response.set_cookie(
            REMEMBER_EMAIL_COOKIE,
            payload.email,
            max_age=REMEMBER_EMAIL_MAX_AGE,
            httponly=True,
            samesite="lax",
        )
    else:
        response.delete_cookie(REMEMBER_EMAIL_COOKIE)

    _merge_guest_cart(request, response, session, result)
    return result


@router.post(
    "/register",
    response_model=SessionRead,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: RegisterRequest,
    session: Session = Depends(get_session),
):
    """
    Create an account. Tokens are empty while e-mail confirmation is
    pending.
    """
    return service.sign_up(session, payload)


@router.post("/logout", response_model=MessageRead)
def logout(access_token: str = Depends(get_access_token)):
    service.sign_out(access_token)
    return MessageRead(message=SUCCESS_MESSAGES["logout"])


@router.post("/refresh", response_model=SessionRead)
def refresh(
    payload: RefreshRequest,
    session: Session = Depends(get_session),
):
    return service.refresh_session(session, payload.refresh_token)


@router.post("/reset-password", response_model=MessageRead)
def reset_password(payload: PasswordResetRequest):
    """
    Send the password-reset e-mail (link back to /auth/reset-password).
    """
    service.reset_password(payload.email)
    return MessageRead(message=SUCCESS_MESSAGES["password_reset"])


@router.post("/change-password", response_model=MessageRead)
def change_password(
    payload: PasswordChangeRequest,
    current_user: User = Depends(require_auth),
):
    service.change_password(current_user, payload.new_password)
    return MessageRead(message=SUCCESS_MESSAGES["update"])


@router.get("/remembered-email", response_model=RememberedEmail)
def remembered_email(request: Request):
    return RememberedEmail(email=request.cookies.get(REMEMBER_EMAIL_COOKIE))


@router.get("/state", response_model=AuthState)
def auth_state(current_user: User | None = Depends(get_current_user)):
    """
    Who is browsing: guest, retail (b2c) or wholesale (b2b) account.
    """
    return user_service.auth_state(current_user)
