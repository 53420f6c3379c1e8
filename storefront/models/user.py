# storefront/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Persistent customer profile.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    Account type:
      - user_type "b2b" (wholesale) | "b2c" (retail)
      - gates the price list and the payment methods offered at checkout

    Supabase Auth stores the password in its own schema. This table only
    mirrors identity, contact details, account type and application role.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Email from Supabase auth.users",
    )

    full_name: str | None = Field(
        default=None,
        max_length=100,
        description="Customer display name",
    )

    phone: str | None = Field(
        default=None,
        max_length=20,
    )

    user_type: str = Field(
        default="b2c",
        index=True,
        description="Account type: b2b | b2c",
    )

    company_name: str | None = Field(
        default=None,
        max_length=150,
        description="Company name for wholesale accounts",
    )

    avatar_url: str | None = Field(
        default=None,
        description="Public URL stored in Supabase Storage",
    )

    is_verified: bool = Field(default=False)

    # Application role (not Supabase RLS role)
    role: str = Field(
        default="user",
        index=True,
        description="Application role: user | admin",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
