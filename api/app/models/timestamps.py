"""
Timestamp helpers shared by all tables.

Stored datetimes are timezone-aware UTC.
"""
from datetime import datetime, timezone

from sqlalchemy import DateTime

UTC_DATETIME = DateTime(timezone=True)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
