"""Shared UTC timestamp helpers."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any


def utc_now() -> datetime:
    """Return current UTC time with second precision."""
    return datetime.now(UTC).replace(microsecond=0)


def iso_z(value: datetime) -> str:
    """Format a datetime as ISO-8601 with trailing Z in UTC."""
    normalized = value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)
    return normalized.isoformat().replace("+00:00", "Z")


def parse_iso_z(value: str) -> datetime | None:
    """Parse an ISO timestamp and normalize to UTC."""
    raw = value.strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def coerce_utc(value: Any) -> datetime | None:
    """Accept a datetime or ISO string and return an aware UTC datetime."""
    if isinstance(value, datetime):
        return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)
    if isinstance(value, str):
        return parse_iso_z(value)
    return None
