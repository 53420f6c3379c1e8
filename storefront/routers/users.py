# storefront/routers/users.py
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlmodel import Session

from storefront.core.auth import require_auth
from storefront.core.constants import ERROR_MESSAGES
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user import UserRead, UserUpdate
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = UserRepository()
service = UserService(repo)


# -------- Self profile --------


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(require_auth)):
    """
    Return the authenticated user's profile.

    Auth:
      - Requires valid Supabase JWT.
    """
    return service.get_me(current_user)


@router.patch("/me", response_model=UserRead)
def update_me(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Update the authenticated user's profile (partial update).

    Editable: full_name, phone, company_name.
    """
    return service.update_me(session, current_user, payload)


@router.post(
    "/me/avatar",
    response_model=UserRead,
    summary="Upload or replace the profile picture",
)
def upload_avatar(
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Upload a new avatar.

    - Accepts JPEG, PNG, WEBP up to 5MB.
    - Replaces any previous avatar.
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=ERROR_MESSAGES["file_type"],
        )

    file_bytes = file.file.read()
    return service.upload_avatar(
        session=session,
        current_user=current_user,
        content_type=file.content_type,
        file_bytes=file_bytes,
    )
