# storefront/core/validators.py
import re

PHONE_RE = re.compile(r"^09\d{9}$")
POSTAL_CODE_RE = re.compile(r"^\d{10}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_PERSIAN_DIGITS = "۰۱۲۳۴۵۶۷۸۹"
_ARABIC_DIGITS = "٠١٢٣٤٥٦٧٨٩"
_TO_ASCII = str.maketrans(_PERSIAN_DIGITS + _ARABIC_DIGITS, "0123456789" * 2)


def to_english_digits(value: str) -> str:
    """Replace Persian and Arabic-Indic digits with ASCII digits."""
    return value.translate(_TO_ASCII)


def is_valid_phone(value: str) -> bool:
    return bool(PHONE_RE.match(to_english_digits(value)))


def is_valid_postal_code(value: str) -> bool:
    return bool(POSTAL_CODE_RE.match(to_english_digits(value)))


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def normalize_phone(value: str | None) -> str | None:
    """
    Pydantic helper for optional mobile numbers.

    Blank -> None; otherwise digits are normalized and the 09XXXXXXXXX
    pattern is enforced.
    """
    if value is None:
        return None
    value = to_english_digits(value.strip())
    if not value:
        return None
    if not PHONE_RE.match(value):
        raise ValueError("phone must start with 09 and have 11 digits")
    return value
