# storefront/schemas/checkout.py
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

ShippingMethod = Literal["standard", "express", "pickup"]
PaymentMethod = Literal["online", "cash", "transfer"]
UserType = Literal["b2b", "b2c"]


class CheckoutData(SQLModel):
    """
    Everything the 3-step checkout wizard collects.

    Field-level rules (required fields, phone and postal code patterns) are
    checked by CheckoutForm so the errors come back per field and localized;
    this model only trims whitespace.

    Steps:
      1. first_name, last_name, phone, email
      2. address, city, state, postal_code, shipping_method
      3. payment_method, notes
    """

    model_config = ConfigDict(extra="forbid")

    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    email: str | None = None
    company_name: str | None = None

    address: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    shipping_method: str = "standard"

    payment_method: str = "online"
    notes: str | None = None

    @field_validator(
        "first_name",
        "last_name",
        "phone",
        "address",
        "city",
        "state",
        "postal_code",
        "shipping_method",
        "payment_method",
    )
    @classmethod
    def strip(cls, v: str) -> str:
        return v.strip()

    @field_validator("email", "company_name", "notes")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class StepValidationRequest(CheckoutData):
    step: int = Field(ge=1, le=3)


class StepValidationResult(SQLModel):
    step: int
    valid: bool
    errors: dict[str, str]
    next_step: int


class CheckoutQuoteRequest(SQLModel):
    shipping_method: ShippingMethod = "standard"
    # Explicit subtotal, e.g. for a cart held by the client; defaults to the
    # current cart's total.
    subtotal: float | None = Field(default=None, ge=0)


class CheckoutQuote(SQLModel):
    user_type: UserType
    shipping_method: ShippingMethod
    subtotal: float
    shipping_cost: float
    final_total: float
    payment_methods: list[PaymentMethod]
