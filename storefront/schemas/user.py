# storefront/schemas/user.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from storefront.core.validators import normalize_phone

# App-level roles. "guest" = no token, so we don't store it here.
Role = Literal["user", "admin"]
UserType = Literal["b2b", "b2c"]


def _strip_or_none(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class UserRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    email: EmailStr
    full_name: str | None
    phone: str | None
    user_type: UserType
    company_name: str | None
    avatar_url: str | None
    is_verified: bool
    role: Role
    created_at: datetime


class UserUpdate(SQLModel):
    """
    Partial profile update for authenticated users.
    Email and account type are not editable here.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    company_name: str | None = Field(default=None, max_length=150)

    @field_validator("full_name", "company_name")
    @classmethod
    def normalize(cls, v: str | None) -> str | None:
        return _strip_or_none(v)

    @field_validator("phone", mode="before")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        return normalize_phone(v)


class AuthState(SQLModel):
    is_authenticated: bool
    user_type: UserType | None
    is_b2b: bool
    is_b2c: bool
    is_verified: bool
