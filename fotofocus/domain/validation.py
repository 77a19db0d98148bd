"""Domain helpers for input validation."""
from __future__ import annotations

import re

from fotofocus.core.errors import ValidationError

_ID_PATTERN = re.compile(r"[0-9]{1,18}")

RATING_MIN = 1
RATING_MAX = 5


def parse_id(value: str | int | None, label: str = "id") -> int:
    """Return a positive integer id or raise ValidationError."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {label}")
    if isinstance(value, int):
        number = value
    else:
        raw = (value or "").strip()
        if not _ID_PATTERN.fullmatch(raw):
            raise ValidationError(f"Invalid {label}")
        number = int(raw)
    if number <= 0:
        raise ValidationError(f"Invalid {label}")
    return number


def normalize_email(value: str | None) -> str:
    email = (value or "").strip().lower()
    if not email or "@" not in email:
        raise ValidationError("email required")
    return email


def require_text(value: str | None, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} required")
    return text


def optional_text(value: str | None) -> str | None:
    text = (value or "").strip()
    return text or None


def parse_rating(value) -> int:
    if isinstance(value, bool):
        raise ValidationError("Rating must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Rating must be a number")
    if not number.is_integer() or not RATING_MIN <= number <= RATING_MAX:
        raise ValidationError(f"Rating must be an integer between {RATING_MIN} and {RATING_MAX}")
    return int(number)
