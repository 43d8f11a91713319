"""
date_time_helper.py

Helper functions for date/time values. Everything stored in the database or
written to logs is timezone-aware UTC in ISO8601 form.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """
    Returns the current UTC time as an ISO8601 string (YYYY-MM-DDTHH:MM:SS+00:00).
    Used for logging and DB storage.
    """
    return to_utc_iso(utc_now())


def to_utc_iso(value: datetime) -> str:
    """Normalise *value* to UTC (naive values are taken as UTC) and format it."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0).isoformat()


def parse_utc_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_display(value: datetime) -> str:
    """Human readable timestamp printed on generated documents."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def epoch_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)
