"""Time helpers shared by the session services.

Timestamps are stored as naive UTC datetimes so they round-trip through
SQLite and Postgres alike; they are rendered with a trailing ``Z``.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat(timespec='milliseconds') + 'Z'


def seconds_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds()
