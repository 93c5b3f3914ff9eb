"""Calendar helpers: ISO weeks, month ranges and business-day fallback.

Every date handled by the pipeline is a plain ``datetime.date``; its
canonical text form is ``YYYY-MM-DD``. "Today" is always evaluated in a
single configured time zone so a request never depends on the host clock's
zone.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

SATURDAY = 5
SUNDAY = 6


def parse_iso_date(value: str) -> date:
    """Parse ``YYYY-MM-DD`` strictly, raising ``ValueError`` otherwise."""

    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def today_in(timezone: str) -> date:
    return datetime.now(ZoneInfo(timezone)).date()


def iso_week_of(d: date) -> tuple[int, int]:
    """Return ``(iso_year, iso_week)``; the ISO year owns the week's Thursday."""

    iso = d.isocalendar()
    return iso[0], iso[1]


def week_range(iso_year: int, iso_week: int) -> tuple[date, date]:
    """Monday through Sunday of the given ISO week."""

    jan4 = date(iso_year, 1, 4)
    first_monday = jan4 - timedelta(days=jan4.weekday())
    start = first_monday + timedelta(weeks=iso_week - 1)
    return start, start + timedelta(days=6)


def month_range(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def date_range(start: date, end: date) -> list[date]:
    """All dates from ``start`` to ``end`` inclusive."""

    days = (end - start).days
    return [start + timedelta(days=offset) for offset in range(days + 1)]


def is_weekend(d: date) -> bool:
    return d.weekday() in (SATURDAY, SUNDAY)


def previous_business_day(d: date) -> date:
    """Step back one day, then off the weekend onto Friday.

    Only weekends are skipped. Official holidays are not known here, so a
    holiday is treated as a business day and simply consumes a fallback
    attempt.
    """

    candidate = d - timedelta(days=1)
    if candidate.weekday() == SUNDAY:
        candidate -= timedelta(days=2)
    elif candidate.weekday() == SATURDAY:
        candidate -= timedelta(days=1)
    return candidate


__all__ = [
    "date_range",
    "is_weekend",
    "iso_week_of",
    "month_range",
    "parse_iso_date",
    "previous_business_day",
    "today_in",
    "week_range",
]
