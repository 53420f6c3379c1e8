# storefront/services/checkout_service.py
from fastapi import HTTPException, status

from storefront.core.constants import ERROR_MESSAGES
from storefront.core.validators import (
    is_valid_email,
    is_valid_phone,
    is_valid_postal_code,
    to_english_digits,
)
from storefront.schemas.checkout import CheckoutData, CheckoutQuote

FIRST_STEP = 1
LAST_STEP = 3

# (shipping method, account type) -> cost in toman
SHIPPING_COSTS: dict[str, dict[str, float]] = {
    "standard": {"b2b": 0, "b2c": 25000},
    "express": {"b2b": 50000, "b2c": 45000},
    "pickup": {"b2b": 0, "b2c": 0},
}

SHIPPING_METHODS = tuple(SHIPPING_COSTS)
PAYMENT_METHODS = ("online", "cash", "transfer")

REQUIRED_MESSAGES = {
    "first_name": "نام الزامی است",
    "last_name": "نام خانوادگی الزامی است",
    "phone": "شماره تلفن الزامی است",
    "address": "آدرس الزامی است",
    "city": "شهر الزامی است",
    "postal_code": "کد پستی الزامی است",
    "shipping_method": "روش ارسال را انتخاب کنید",
    "payment_method": "روش پرداخت را انتخاب کنید",
}
INVALID_PHONE = "شماره تلفن معتبر نیست"
INVALID_POSTAL_CODE = "کد پستی باید 10 رقم باشد"
INVALID_EMAIL = "ایمیل معتبر نیست"
INVALID_SHIPPING = "روش ارسال معتبر نیست"
INVALID_PAYMENT = "روش پرداخت معتبر نیست"
TRANSFER_B2B_ONLY = "پرداخت با حواله بانکی فقط برای مشتریان عمده امکان‌پذیر است"
SUBMIT_TOO_EARLY = "ابتدا مراحل قبلی را تکمیل کنید"


def shipping_cost(user_type: str | None, method: str) -> float:
    """Unknown methods cost nothing; guests pay retail rates."""
    costs = SHIPPING_COSTS.get(method)
    if costs is None:
        return 0
    return costs["b2b" if user_type == "b2b" else "b2c"]


def payment_methods_for(user_type: str | None) -> list[str]:
    """Bank transfer (invoice) is offered to wholesale accounts only."""
    if user_type == "b2b":
        return list(PAYMENT_METHODS)
    return ["online", "cash"]


def quote(user_type: str | None, method: str, subtotal: float) -> CheckoutQuote:
    cost = shipping_cost(user_type, method)
    return CheckoutQuote(
        user_type="b2b" if user_type == "b2b" else "b2c",
        shipping_method=method,
        subtotal=subtotal,
        shipping_cost=cost,
        final_total=subtotal + cost,
        payment_methods=payment_methods_for(user_type),
    )


class CheckoutForm:
    """
    The three-step checkout wizard.

      1. personal info: first_name, last_name, phone, email (optional)
      2. address & shipping: address, city, state, postal_code, shipping_method
      3. payment: payment_method, notes (optional)

    The current step never leaves 1..3 and submission is only possible on
    the last step, after every step validates.
    """

    def __init__(
        self,
        data: CheckoutData | None = None,
        user_type: str | None = None,
        step: int = FIRST_STEP,
    ):
        self.data = data or CheckoutData()
        self.user_type = user_type
        self.step = min(max(step, FIRST_STEP), LAST_STEP)

    # ---- navigation ----

    def next_step(self) -> int:
        self.step = min(self.step + 1, LAST_STEP)
        return self.step

    def prev_step(self) -> int:
        self.step = max(self.step - 1, FIRST_STEP)
        return self.step

    # ---- validation ----

    def _required(self, errors: dict[str, str], *fields: str) -> None:
        for name in fields:
            if not getattr(self.data, name):
                errors[name] = REQUIRED_MESSAGES[name]

    def validate_step(self, step: int) -> dict[str, str]:
        """
        Field errors (Persian) of one step; an empty dict means valid.
        """
        d = self.data
        errors: dict[str, str] = {}

        if step == 1:
            self._required(errors, "first_name", "last_name", "phone")
            if d.phone and not is_valid_phone(d.phone):
                errors["phone"] = INVALID_PHONE
            if d.email and not is_valid_email(d.email):
                errors["email"] = INVALID_EMAIL

        elif step == 2:
            self._required(errors, "address", "city", "postal_code", "shipping_method")
            if d.postal_code and not is_valid_postal_code(d.postal_code):
                errors["postal_code"] = INVALID_POSTAL_CODE
            if d.shipping_method and d.shipping_method not in SHIPPING_METHODS:
                errors["shipping_method"] = INVALID_SHIPPING

        elif step == 3:
            self._required(errors, "payment_method")
            if d.payment_method and d.payment_method not in PAYMENT_METHODS:
                errors["payment_method"] = INVALID_PAYMENT
            elif d.payment_method and d.payment_method not in payment_methods_for(
                self.user_type
            ):
                errors["payment_method"] = TRANSFER_B2B_ONLY

        return errors

    def validate_all(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        for step in range(FIRST_STEP, LAST_STEP + 1):
            errors.update(self.validate_step(step))
        return errors

    def advance(self) -> dict[str, str]:
        """Move forward only when the current step is valid."""
        errors = self.validate_step(self.step)
        if not errors:
            self.next_step()
        return errors

    # ---- totals ----

    @property
    def shipping_cost(self) -> float:
        return shipping_cost(self.user_type, self.data.shipping_method)

    def final_total(self, subtotal: float) -> float:
        return subtotal + self.shipping_cost

    # ---- submit ----

    def submit(self) -> CheckoutData:
        """
        Return the cleaned wizard data, ready to become an order.

        Raises:
            HTTPException(400): before the last step.
            HTTPException(422): with the field errors of every invalid step.
        """
        if self.step < LAST_STEP:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=SUBMIT_TOO_EARLY,
            )
        errors = self.validate_all()
        if errors:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"message": ERROR_MESSAGES["validation"], "errors": errors},
            )
        return self.data.model_copy(
            update={
                "phone": to_english_digits(self.data.phone),
                "postal_code": to_english_digits(self.data.postal_code),
            }
        )
