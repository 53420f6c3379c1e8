# storefront/services/user_service.py
import logging

from fastapi import HTTPException, status
from sqlmodel import Session
from supabase import StorageException

from storefront.core.constants import (
    ALLOWED_IMAGE_CONTENT_TYPES,
    ERROR_MESSAGES,
    MAX_IMAGE_BYTES,
)
from storefront.core.storage_utils import (
    delete_public_url,
    generate_filename,
    upload_to_storage,
)
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user import AuthState, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for the customer profile.

    Responsibilities:
      - profile edits (email and account type are not editable)
      - avatar upload orchestration with Supabase Storage
      - the auth-state summary the storefront header needs
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    # ----- Self profile -----

    def get_me(self, current_user: User) -> User:
        """Return the current authenticated user."""
        return current_user

    def update_me(
        self,
        session: Session,
        current_user: User,
        payload: UserUpdate,
    ) -> User:
        """
        Partial update: only fields present in the payload are touched.
        """
        changes = payload.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(current_user, field, value)
        return self.repo.save(session, current_user)

    # ----- Avatar -----

    @staticmethod
    def _validate_and_get_ext(content_type: str, file_bytes: bytes) -> str:
        if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=ERROR_MESSAGES["file_type"],
            )

        if len(file_bytes) > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=ERROR_MESSAGES["file_size"],
            )

        return ALLOWED_IMAGE_CONTENT_TYPES[content_type]

    def upload_avatar(
        self,
        session: Session,
        current_user: User,
        content_type: str,
        file_bytes: bytes,
    ) -> User:
        """
        Upload or replace the user's avatar.

        - Validates content type + size.
        - Uploads to users/<user_id>/avatar-<uuid>.<ext>.
        - Deletes the previous avatar from Storage afterwards.
        """
        ext = self._validate_and_get_ext(content_type, file_bytes)
        path = f"users/{current_user.id}/{generate_filename('avatar', ext)}"

        try:
            new_url = upload_to_storage(path, file_bytes, content_type)
        except (StorageException, RuntimeError) as exc:
            logger.error("Avatar upload failed for %s: %s", current_user.id, exc)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=ERROR_MESSAGES["server"],
            )

        old_url = current_user.avatar_url
        current_user.avatar_url = new_url
        user = self.repo.save(session, current_user)

        if old_url:
            try:
                delete_public_url(old_url)
            except (StorageException, RuntimeError) as exc:
                logger.warning("Old avatar %s not removed: %s", old_url, exc)

        return user

    # ----- Auth state -----

    @staticmethod
    def auth_state(user: User | None) -> AuthState:
        if user is None:
            return AuthState(
                is_authenticated=False,
                user_type=None,
                is_b2b=False,
                is_b2c=False,
                is_verified=False,
            )
        return AuthState(
            is_authenticated=True,
            user_type=user.user_type,
            is_b2b=user.user_type == "b2b",
            is_b2c=user.user_type == "b2c",
            is_verified=user.is_verified,
        )
