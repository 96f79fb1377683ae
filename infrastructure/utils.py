"""Timestamp and value parsing helpers for catalog files.

Parsing is best-effort and does not raise; callers should expect `None` when
a value is missing or malformed.
"""

from __future__ import annotations

from datetime import datetime

from loguru import logger

CSV_DT_FMT = "%Y-%m-%d %H:%M:%S"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse `CSV_DT_FMT` or ISO-8601 (a trailing `Z` means UTC); None on failure."""
    if not value:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return datetime.strptime(text, CSV_DT_FMT)
    except ValueError:
        pass
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.warning("Invalid timestamp: {}", value)
        return None


def format_timestamp(dt: datetime | None) -> str:
    """Format for the catalog; aware values keep their offset. Empty when None."""
    if dt is None:
        return ""
    if dt.tzinfo is not None:
        return dt.isoformat()
    return dt.strftime(CSV_DT_FMT)


def parse_bool(value: str | None) -> bool:
    """Parse booleans encoded as 1/0 or true/false (case-insensitive)."""
    return str(value or "").strip().lower() in {"1", "true", "yes"}


def parse_optional_int(value: str | None) -> int | None:
    text = str(value or "").strip()
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        logger.warning("Invalid integer: {}", value)
        return None


def parse_optional_float(value: str | None) -> float | None:
    text = str(value or "").strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        logger.warning("Invalid number: {}", value)
        return None


def optional_text(value: str | None) -> str | None:
    text = str(value or "").strip()
    return text or None
