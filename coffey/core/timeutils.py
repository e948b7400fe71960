"""Timestamp helpers shared by adapters and record assembly."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

EXIF_FORMAT = "%Y:%m:%d %H:%M:%S"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision and a Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def now_iso() -> str:
    return to_iso(utcnow())


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 or EXIF (``YYYY:MM:DD HH:MM:SS``) timestamps to aware UTC.

    Naive values are assumed to be UTC. Returns None for anything unparseable.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        parsed = datetime.strptime(text[:19], EXIF_FORMAT)
        return parsed.replace(tzinfo=timezone.utc)
    except ValueError:
        pass

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def date_prefix(value: Optional[str]) -> str:
    """The ``YYYY-MM-DD`` part of a timestamp, falling back to today."""
    parsed = parse_timestamp(value)
    if parsed is None:
        parsed = utcnow()
    return parsed.strftime("%Y-%m-%d")
