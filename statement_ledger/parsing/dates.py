"""Date helpers for statement rows (ISO ``YYYY-MM-DD`` and Brazilian ``DD/MM/YYYY``)."""

from datetime import date
from typing import Optional


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` or ``DD/MM/YYYY``; anything else returns None."""
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    try:
        if "-" in text:
            parts = text.split("-")
            if len(parts) == 3:
                year, month, day = (int(p) for p in parts)
                return date(year, month, day)
        if "/" in text:
            parts = text.split("/")
            if len(parts) == 3:
                day, month, year = (int(p) for p in parts)
                return date(year, month, day)
    except ValueError:
        return None
    return None


def to_iso_date(value: str) -> str:
    """ISO form of ``value`` when parseable, otherwise the trimmed text."""
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else value.strip()


def month_key(value: str) -> Optional[str]:
    """``YYYY-MM`` period of a transaction date, or None."""
    parsed = parse_date(value)
    return f"{parsed.year:04d}-{parsed.month:02d}" if parsed else None
