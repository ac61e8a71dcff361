"""Validation and normalization of withdrawal form fields."""

import re

import phonenumbers
from phonenumbers import NumberParseException

from earnhub.errors import ValidationError
from earnhub.storage.models import MAX_INTEGER

CARD_NUMBER_RE = re.compile(r"^\d{12,19}$")
EXPIRATION_RE = re.compile(r"^(0[1-9]|1[0-2])/(\d{2}|\d{4})$")
SECURITY_CODE_RE = re.compile(r"^\d{3,4}$")


def clean_card_number(card_number: str) -> str:
    """Strip spaces and dashes; require 12-19 digits."""
    digits = re.sub(r"[\s\-]", "", card_number or "")
    if not CARD_NUMBER_RE.match(digits):
        raise ValidationError("Card number must be 12 to 19 digits")
    return digits


def clean_expiration(expiration_date: str) -> str:
    value = (expiration_date or "").strip()
    if not EXPIRATION_RE.match(value):
        raise ValidationError("Expiration date must look like MM/YY")
    return value


def clean_security_code(security_code: str) -> str:
    value = (security_code or "").strip()
    if not SECURITY_CODE_RE.match(value):
        raise ValidationError("Security code must be 3 or 4 digits")
    return value


def parse_amount(amount: str | int | None) -> int:
    """Parse a positive whole amount.

    Raises:
        ValidationError: If missing, not an integer, not positive or too large
    """
    if amount is None or str(amount).strip() == "":
        raise ValidationError("Amount is required")
    try:
        value = int(str(amount).strip())
    except ValueError as e:
        raise ValidationError("Amount must be a whole number") from e
    if value <= 0:
        raise ValidationError("Amount must be positive")
    if value > MAX_INTEGER:
        raise ValidationError(f"Amount must not exceed {MAX_INTEGER}")
    return value


def normalize_phone(phone: str | None, region: str | None = None) -> str | None:
    """Normalize a phone number to E.164 when it parses, else return it stripped.

    Args:
        phone: Raw phone number
        region: ISO 3166-1 alpha-2 hint for numbers without a country prefix

    Returns:
        E.164 string, the stripped input, or None for blank input
    """
    if not phone or not phone.strip():
        return None

    phone = phone.strip()
    if region is not None and len(region) != 2:
        region = None

    try:
        parsed = phonenumbers.parse(phone, region.upper() if region else None)
    except NumberParseException:
        return phone

    if not phonenumbers.is_valid_number(parsed):
        return phone

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
