# storefront/schemas/auth.py
from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from storefront.core.validators import normalize_phone
from storefront.schemas.user import UserRead, UserType

MIN_PASSWORD_LENGTH = 6


class LoginRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1)
    remember: bool = False


class RegisterRequest(SQLModel):
    """
    Sign-up payload. The account type decides the price list and the
    payment methods the customer will see.
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    full_name: str = Field(max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    user_type: UserType = "b2c"
    company_name: str | None = Field(default=None, max_length=150)

    @field_validator("full_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("full_name cannot be empty")
        return v

    @field_validator("phone", mode="before")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        return normalize_phone(v)


class RefreshRequest(SQLModel):
    refresh_token: str


class PasswordResetRequest(SQLModel):
    email: EmailStr


class PasswordChangeRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class SessionRead(SQLModel):
    """
    Tokens issued by Supabase Auth. `user` is the storefront profile, which
    may be missing right after sign-up when e-mail confirmation is pending.
    """

    access_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None
    user: UserRead | None = None


class RememberedEmail(SQLModel):
    email: str | None


class MessageRead(SQLModel):
    message: str
