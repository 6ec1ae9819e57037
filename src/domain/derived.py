"""
Derived-field calculations.

Fields in this module are never trusted from callers: they are recomputed
on every write that touches their source field. All functions are pure
and idempotent.
"""

import math
import re
from datetime import date, datetime, timedelta

# Gregorian average year (365.2425 days) instead of calendar subtraction
AVERAGE_YEAR = timedelta(days=365.2425)

IBAN_PATTERN = re.compile(r"^[A-Z]{2}[0-9A-Z]{13,32}$")

_WHITESPACE = re.compile(r"\s+")

# .../upload/[transformations/][v123/]<asset id>.<ext>
_ASSET_URL = re.compile(r"/upload/(?:[^/]*[_,:][^/]*/)*(?:v\d+/)?(?P<asset_id>.+?)(?:\.[A-Za-z0-9]+)?$")


def compute_age(birth_date: date, now: datetime) -> int:
    """
    Whole years elapsed between birth_date (midnight) and now.

    Uses the average year length so leap years never shift the boundary.
    """
    born = datetime(birth_date.year, birth_date.month, birth_date.day, tzinfo=now.tzinfo)
    return math.floor((now - born) / AVERAGE_YEAR)


def normalize_iban(iban: str) -> str:
    """Strip all whitespace and uppercase."""
    return _WHITESPACE.sub("", iban).upper()


def is_valid_iban(iban: str) -> bool:
    """Check a normalized IBAN against the country-code + BBAN shape."""
    return IBAN_PATTERN.match(iban) is not None


def sanitize_reference(value: str | None) -> str | None:
    """Treat blank optional references as absent."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def asset_id_from_url(url: str) -> str | None:
    """
    Derive the asset-store identifier from a delivery URL.

    Returns None when the URL does not follow the upload path pattern.
    """
    match = _ASSET_URL.search(url.split("?", 1)[0])
    if match is None:
        return None
    return match.group("asset_id")
