# storefront/schemas/contact.py
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from storefront.core.validators import normalize_phone

ContactType = Literal["general", "support", "wholesale", "complaint"]


class ContactCreate(SQLModel):
    """
    Contact page form.

    - phone is optional, but must look like 09XXXXXXXXX when given
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=100)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=20)
    subject: str = Field(max_length=200)
    message: str = Field(max_length=5000)
    type: ContactType = "general"

    @field_validator("name", "subject", "message")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("phone", mode="before")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        return normalize_phone(v)
