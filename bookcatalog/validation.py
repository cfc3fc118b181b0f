"""Field validation shared by the schemas and the CRUD helpers.

Every helper raises ``ValueError`` with a message naming the offending field,
so they can back both pydantic validators and plain function arguments.
"""

from __future__ import annotations

import re

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# PostgreSQL SMALLINT bounds
SMALLINT_MIN = -32768
SMALLINT_MAX = 32767

RATING_MIN = 0
RATING_MAX = 5


def require_non_empty(value: str | None, field_name: str) -> str:
    """Validate that a string field is not None, empty, or whitespace-only."""
    if value is None:
        raise ValueError(f"{field_name} is required")
    value = str(value).strip()
    if not value:
        raise ValueError(f"{field_name} must not be empty")
    return value


def validate_email(email: str | None) -> str:
    """Validate basic email format and return the stripped value."""
    email = require_non_empty(email, "email")
    if not _EMAIL_RE.match(email):
        raise ValueError(f"Invalid email format: {email!r}")
    return email


def validate_year(year: int | None) -> int:
    """Validate a publication year; it is required and must fit a SMALLINT."""
    if year is None:
        raise ValueError("publication_year is required")
    if isinstance(year, bool) or not isinstance(year, int):
        raise ValueError(f"publication_year must be an integer, got {type(year).__name__}")
    if year < SMALLINT_MIN or year > SMALLINT_MAX:
        raise ValueError(
            f"publication_year must be between {SMALLINT_MIN} and {SMALLINT_MAX}, got {year}"
        )
    return year


def validate_rating(rating: int) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValueError(f"rating must be an integer, got {type(rating).__name__}")
    if not (RATING_MIN <= rating <= RATING_MAX):
        raise ValueError(f"Rating must be between {RATING_MIN} and {RATING_MAX}, got {rating}")
    return rating
