# storefront/services/auth_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from supabase import AuthError

from storefront.core.auth import profile_from_metadata
from storefront.core.config import get_settings
from storefront.core.supabase_client import supabase_admin, supabase_public
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.auth import RegisterRequest, SessionRead
from storefront.schemas.user import UserRead

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "ایمیل یا رمز عبور اشتباه است"
EMAIL_NOT_CONFIRMED = "ایمیل شما هنوز تایید نشده است"
REGISTER_FAILED = "خطا در ثبت نام"
ALREADY_REGISTERED = "این ایمیل قبلاً ثبت شده است"
REFRESH_FAILED = "نشست شما منقضی شده است، دوباره وارد شوید"
RESET_FAILED = "خطا در ارسال ایمیل بازیابی رمز عبور"
CHANGE_PASSWORD_FAILED = "خطا در تغییر رمز عبور"


def _auth_error(exc: AuthError, fallback: str) -> HTTPException:
    """Map a Supabase Auth error to a 400 with a Persian message."""
    message = str(exc).lower()
    if "invalid login credentials" in message:
        detail = INVALID_CREDENTIALS
    elif "email not confirmed" in message:
        detail = EMAIL_NOT_CONFIRMED
    elif "already registered" in message or "already been registered" in message:
        detail = ALREADY_REGISTERED
    else:
        detail = fallback
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class AuthService:
    """
    Account operations backed by Supabase Auth.

    Supabase owns credentials and sessions; this service keeps the
    storefront profile (public.users) in step with the auth user.
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    # ----- helpers -----

    def _ensure_profile(self, session: Session, auth_user) -> User:
        user_id = uuid.UUID(str(auth_user.id))
        return self.repo.provision(
            session,
            profile_from_metadata(user_id, auth_user.email, auth_user.user_metadata),
        )

    @staticmethod
    def _tokens(auth_session, profile: User | None) -> SessionRead:
        return SessionRead(
            access_token=auth_session.access_token if auth_session else None,
            refresh_token=auth_session.refresh_token if auth_session else None,
            expires_in=auth_session.expires_in if auth_session else None,
            user=UserRead.model_validate(profile) if profile else None,
        )

    def _session_read(self, session: Session, response) -> SessionRead:
        profile = self._ensure_profile(session, response.user) if response.user else None
        return self._tokens(response.session, profile)

    # ----- operations -----

    def sign_up(self, session: Session, payload: RegisterRequest) -> SessionRead:
        """
        Create the Supabase auth user (profile fields go into user_metadata)
        and insert the storefront profile.

        A failing profile insert is logged, not raised: the profile is
        provisioned again from the token on the first authenticated request.
        """
        try:
            response = supabase_public().auth.sign_up(
                {
                    "email": payload.email,
                    "password": payload.password,
                    "options": {
                        "data": {
                            "full_name": payload.full_name,
                            "phone": payload.phone,
                            "user_type": payload.user_type,
                            "company_name": payload.company_name,
                        }
                    },
                }
            )
        except AuthError as exc:
            logger.info("Sign-up rejected for %s: %s", payload.email, exc)
            raise _auth_error(exc, REGISTER_FAILED)

        if response.user is None:
            return SessionRead()

        user_id = uuid.UUID(str(response.user.id))
        try:
            profile = self.repo.provision(
                session,
                User(
                    id=user_id,
                    email=payload.email,
                    full_name=payload.full_name,
                    phone=payload.phone,
                    user_type=payload.user_type,
                    company_name=payload.company_name,
                ),
            )
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Profile insert failed for %s: %s", user_id, exc)
            profile = None

        return self._tokens(response.session, profile)

    def sign_in(self, session: Session, email: str, password: str) -> SessionRead:
        try:
            response = supabase_public().auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            logger.info("Sign-in rejected for %s: %s", email, exc)
            raise _auth_error(exc, INVALID_CREDENTIALS)
        return self._session_read(session, response)

    def sign_out(self, access_token: str) -> None:
        """
        Revoke the session server-side. The client drops its tokens either
        way, so a failure here is only logged.
        """
        try:
            supabase_admin().auth.admin.sign_out(access_token)
        except (AuthError, RuntimeError) as exc:
            logger.warning("Sign-out not propagated to Supabase: %s", exc)

    def refresh_session(self, session: Session, refresh_token: str) -> SessionRead:
        try:
            response = supabase_public().auth.refresh_session(refresh_token)
        except AuthError as exc:
            logger.info("Session refresh rejected: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=REFRESH_FAILED,
            )
        return self._session_read(session, response)

    def reset_password(self, email: str) -> None:
        settings = get_settings()
        try:
            supabase_public().auth.reset_password_for_email(
                email,
                {"redirect_to": f"{settings.SITE_URL}/auth/reset-password"},
            )
        except AuthError as exc:
            logger.warning("Password reset failed for %s: %s", email, exc)
            raise _auth_error(exc, RESET_FAILED)

    def change_password(self, user: User, new_password: str) -> None:
        try:
            supabase_admin().auth.admin.update_user_by_id(
                str(user.id), {"password": new_password}
            )
        except AuthError as exc:
            logger.warning("Password change failed for %s: %s", user.id, exc)
            raise _auth_error(exc, CHANGE_PASSWORD_FAILED)
