"""
Customer detail validation for bookings.

These checks run client-side before any store round trip, and again in
the reservation command itself, in a fixed order: name, phone, email.
"""

import logging
import re
from typing import Optional

from metime.config import ContactConfig, settings
from metime.schemas.booking_schema import BookingError
from metime.schemas.customer_schema import Customer
from metime.utils import normalize_phone

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _phone_pattern(config: ContactConfig) -> re.Pattern:
    return re.compile(rf"^{re.escape(config.phone_prefix)}\d{{{config.phone_digits}}}$")


def validate_name(value: Optional[str], config: Optional[ContactConfig] = None) -> bool:
    config = config or settings.contact
    if value is None:
        return False
    return config.min_name_length <= len(value.strip()) <= config.max_name_length


def validate_phone(value: Optional[str], config: Optional[ContactConfig] = None) -> bool:
    """Check a phone number against the configured country format, ignoring spaces."""
    config = config or settings.contact
    if value is None:
        return False
    return bool(_phone_pattern(config).match(normalize_phone(value)))


def validate_email(value: Optional[str]) -> bool:
    """Email is optional; an empty value is valid."""
    if value is None or not value.strip():
        return True
    return bool(EMAIL_PATTERN.match(value.strip()))


def validate_customer(
    customer: Customer, config: Optional[ContactConfig] = None
) -> Optional[BookingError]:
    """Return the first failing check, or None when the details are acceptable."""
    if not validate_name(customer.name, config):
        return BookingError.INVALID_NAME
    if not validate_phone(customer.phone, config):
        return BookingError.INVALID_PHONE_NUMBER
    if not validate_email(customer.email):
        return BookingError.INVALID_EMAIL
    return None


def clean_customer(customer: Customer) -> Customer:
    """Trim the name, strip phone whitespace and drop blank optional fields."""
    return Customer(
        name=customer.name.strip(),
        phone=normalize_phone(customer.phone),
        email=(customer.email or "").strip() or None,
        notes=(customer.notes or "").strip() or None,
    )
