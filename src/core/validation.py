"""Input validation helpers shared by services and request schemas.

All validators raise ``ValidationError`` so failures map to a 400 envelope.

Usage:
    from src.core.validation import normalize_email, validate_email

    email = validate_email(normalize_email(raw_email))
"""

import re

from email_validator import EmailNotValidError
from email_validator import validate_email as check_email_syntax

from src.core.errors import ValidationError

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")

MAX_EMAIL_LOCAL_LENGTH = 64
MAX_EMAIL_DOMAIN_LENGTH = 255

DISPOSABLE_EMAIL_DOMAINS = (
    "tempmail.com",
    "10minutemail.com",
    "guerrillamail.com",
)


def normalize_email(email: str) -> str:
    """Lower-case and trim an email address before any lookup or storage."""
    return email.strip().lower()


def validate_email(email: str) -> str:
    """Validate a (normalized) email address.

    Args:
        email: Email address to validate.

    Returns:
        The email unchanged when valid.

    Raises:
        ValidationError: Malformed address, over-long local part or domain,
            or a disposable-email domain.
    """
    local_part, _, domain = email.rpartition("@")

    if len(local_part) > MAX_EMAIL_LOCAL_LENGTH:
        raise ValidationError("Email local part is too long")

    if len(domain) > MAX_EMAIL_DOMAIN_LENGTH:
        raise ValidationError("Email domain is too long")

    try:
        # Syntax only; no DNS deliverability lookup
        check_email_syntax(email, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Invalid email format")

    domain = domain.lower()
    if any(disposable in domain for disposable in DISPOSABLE_EMAIL_DOMAINS):
        raise ValidationError("Disposable email addresses are not allowed")

    return email


def validate_phone(phone: str) -> str:
    """Validate an E.164-style phone number.

    Raises:
        ValidationError: If the number does not match ``+<digits>``.
    """
    if not PHONE_PATTERN.match(phone):
        raise ValidationError("Invalid phone number format")
    return phone
