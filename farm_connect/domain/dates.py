"""
Wall-clock date helpers shared by filters, exports and documents.

Timestamps coming from the store may be naive (already wall-clock) or aware
(UTC from the entry forms). Every calendar-day decision in the core goes through
`wall_clock` so the filter, the export Date column and the printed document
agree on which day a record belongs to.
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from farm_connect.config import get_settings

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def resolve_zone(name: Optional[str]) -> Optional[tzinfo]:
    """Return the IANA zone for `name`, or None for the system local zone."""
    return ZoneInfo(name) if name else None


def display_zone() -> Optional[tzinfo]:
    return resolve_zone(get_settings().display_timezone)


def wall_clock(ts: datetime, tz: Optional[tzinfo] = None) -> datetime:
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(tz)


def local_date(ts: datetime, tz: Optional[tzinfo] = None) -> date:
    return wall_clock(ts, tz).date()


def iso_day(ts: datetime, tz: Optional[tzinfo] = None) -> str:
    """`YYYY-MM-DD` as used by export cells and filenames."""
    return local_date(ts, tz).isoformat()


def display_day(ts: datetime, tz: Optional[tzinfo] = None) -> str:
    """`Mon DD, YYYY` as printed on receipts and invoices."""
    day = local_date(ts, tz)
    return f"{_MONTHS[day.month - 1]} {day.day:02d}, {day.year}"


__all__ = ["resolve_zone", "display_zone", "wall_clock", "local_date", "iso_day", "display_day"]
