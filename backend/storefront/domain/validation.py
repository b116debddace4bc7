"""
Shared field validators for public request models
"""
import re
from typing import Optional

PHONE_PATTERN = re.compile(r"^[\d\s\-\+\(\)]+$")
TIME_SLOT_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")
MARKUP_PATTERN = re.compile(r"<[^>]*>|javascript:", re.IGNORECASE)


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip whitespace and reject HTML/script content; blank becomes None"""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if MARKUP_PATTERN.search(value):
        raise ValueError("must not contain HTML or script content")
    return value


def clean_required_text(value: str) -> str:
    cleaned = clean_text(value)
    if cleaned is None:
        raise ValueError("is required")
    return cleaned


def clean_phone(value: Optional[str]) -> Optional[str]:
    value = clean_text(value)
    if value is not None and not PHONE_PATTERN.match(value):
        raise ValueError("may only contain digits, spaces, +, - and parentheses")
    return value
