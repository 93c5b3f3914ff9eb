from datetime import date, timedelta

import pytest

from dof_fx.core.dates import (
    date_range,
    is_weekend,
    iso_week_of,
    month_range,
    parse_iso_date,
    previous_business_day,
    week_range,
)


@pytest.mark.parametrize(
    "given, expected",
    [
        (date(2025, 8, 4), date(2025, 8, 1)),  # Monday
        (date(2025, 8, 2), date(2025, 8, 1)),  # Saturday
        (date(2025, 8, 3), date(2025, 8, 1)),  # Sunday
        (date(2025, 8, 6), date(2025, 8, 5)),
        (date(2025, 9, 1), date(2025, 8, 29)),
        (date(2025, 1, 1), date(2024, 12, 31)),
    ],
)
def test_previous_business_day(given, expected):
    assert previous_business_day(given) == expected


def test_previous_business_day_never_lands_on_weekend():
    day = date(2024, 1, 1)
    for _ in range(400):
        result = previous_business_day(day)
        assert not is_weekend(result)
        assert result < day
        day += timedelta(days=1)


def test_week_range_runs_monday_to_sunday():
    for iso_week in (1, 10, 27, 52):
        start, end = week_range(2025, iso_week)
        assert start.weekday() == 0
        assert end - start == timedelta(days=6)
        assert iso_week_of(start) == (2025, iso_week)


def test_iso_week_belongs_to_year_of_its_thursday():
    assert iso_week_of(date(2024, 12, 30)) == (2025, 1)
    assert iso_week_of(date(2021, 1, 3)) == (2020, 53)
    assert week_range(2020, 53) == (date(2020, 12, 28), date(2021, 1, 3))


def test_month_range_handles_february():
    assert month_range(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_range(2025, 2) == (date(2025, 2, 1), date(2025, 2, 28))
    assert month_range(2025, 12)[1] == date(2025, 12, 31)


def test_date_range_is_inclusive():
    days = date_range(date(2025, 9, 29), date(2025, 10, 2))
    assert days[0] == date(2025, 9, 29)
    assert days[-1] == date(2025, 10, 2)
    assert len(days) == 4
    assert date_range(date(2025, 10, 2), date(2025, 10, 1)) == []


def test_parse_iso_date_is_strict():
    assert parse_iso_date(" 2025-10-01 ") == date(2025, 10, 1)
    with pytest.raises(ValueError):
        parse_iso_date("01/10/2025")
