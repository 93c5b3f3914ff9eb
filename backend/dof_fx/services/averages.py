"""Weekly (ISO) and monthly averages over published rates.

Only days with an actual record count; weekends and holidays are never
imputed. A period without qualifying records yields ``None`` rather than a
zero mean.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Protocol, Sequence

from dof_fx.core.dates import iso_week_of, month_range, week_range
from dof_fx.domain import Averages, MonthlyAverage, RateRecord, WeeklyAverage
from dof_fx.services.pnl import round_half_up

logger = logging.getLogger(__name__)

AVERAGE_PLACES = 4


class RecordSource(Protocol):
    async def list_records(
        self, date_from: date | None = None, date_to: date | None = None
    ) -> list[RateRecord]: ...


def _mean_in_range(records: Iterable[RateRecord], start: date, end: date) -> tuple[Decimal, int] | None:
    values = [r.rate for r in records if start <= r.date <= end and r.rate > 0]
    if not values:
        return None
    mean = sum(values, Decimal(0)) / len(values)
    return round_half_up(mean, AVERAGE_PLACES), len(values)


def weekly_average(records: Sequence[RateRecord], reference_date: date) -> WeeklyAverage | None:
    iso_year, iso_week = iso_week_of(reference_date)
    start, end = week_range(iso_year, iso_week)
    outcome = _mean_in_range(records, start, end)
    if outcome is None:
        return None
    value, count = outcome
    logger.info("Weekly average %s-W%02d = %s over %d day(s)", iso_year, iso_week, value, count)
    return WeeklyAverage(iso_year=iso_year, iso_week=iso_week, value=value, record_count=count)


def monthly_average(records: Sequence[RateRecord], reference_date: date) -> MonthlyAverage | None:
    start, end = month_range(reference_date.year, reference_date.month)
    outcome = _mean_in_range(records, start, end)
    if outcome is None:
        return None
    value, count = outcome
    logger.info("Monthly average %04d-%02d = %s over %d day(s)", start.year, start.month, value, count)
    return MonthlyAverage(year=start.year, month=start.month, value=value, record_count=count)


def compute_averages(records: Sequence[RateRecord], reference_date: date) -> Averages:
    return Averages(
        weekly=weekly_average(records, reference_date),
        monthly=monthly_average(records, reference_date),
    )


def covering_range(reference_date: date) -> tuple[date, date]:
    """Smallest range holding both the reference week and the reference month."""

    week_start, week_end = week_range(*iso_week_of(reference_date))
    month_start, month_end = month_range(reference_date.year, reference_date.month)
    return min(week_start, month_start), max(week_end, month_end)


async def load_averages(
    source: RecordSource,
    today: Callable[[], date],
    from_date: date | None = None,
    to_date: date | None = None,
) -> Averages:
    """Read records from ``source`` and average the periods around ``to_date``.

    ``to_date`` defaults to today and doubles as the reference date. When
    ``from_date`` is omitted the read starts early enough to cover the whole
    reference week and month.
    """

    reference = to_date or today()
    if from_date is None:
        from_date = covering_range(reference)[0]
    records = await source.list_records(from_date, reference)
    if not records:
        logger.warning("No rate records between %s and %s", from_date.isoformat(), reference.isoformat())
    return compute_averages(records, reference)


__all__ = [
    "AVERAGE_PLACES",
    "compute_averages",
    "covering_range",
    "load_averages",
    "monthly_average",
    "weekly_average",
]
