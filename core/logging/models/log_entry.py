"""
log_entry.py

Dataclass for a persisted event log entry.

- from_dict()  builds the object from a DB/JSON dict
- as_dict()    returns a plain dict for export
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.helpers.date_time_helper import parse_utc_iso, to_utc_iso


@dataclass
class LogEntry:
    id: Optional[int]
    timestamp: datetime          # always UTC
    log_level: str
    user_id: Optional[int]
    username: Optional[str]
    feature: str
    event: str
    reference_id: Optional[str]
    message: Optional[str]

    @classmethod
    def from_dict(cls, data: dict) -> "LogEntry":
        """Build a LogEntry from a DB/JSON dict."""
        ts = data["timestamp"]
        if isinstance(ts, str):
            ts = parse_utc_iso(ts)
        return cls(
            id=data.get("id"),
            timestamp=ts,
            log_level=data.get("log_level", "INFO"),
            user_id=data.get("user_id"),
            username=data.get("username"),
            feature=data.get("feature", ""),
            event=data.get("event", ""),
            reference_id=data.get("reference_id"),
            message=data.get("message"),
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp_utc": to_utc_iso(self.timestamp),
            "log_level": self.log_level,
            "user_id": self.user_id,
            "username": self.username,
            "feature": self.feature,
            "event": self.event,
            "reference_id": self.reference_id,
            "message": self.message,
        }
