"""CLI wrapper for weekly and monthly averages over the stored rate history."""

from __future__ import annotations

import argparse
import asyncio

from dof_fx.config import get_settings
from dof_fx.core.dates import parse_iso_date
from dof_fx.core.logging import setup_logging
from dof_fx.db import Database
from dof_fx.services.facade import build_rate_service
from dof_fx.storage import SqlRateStore


async def _run(date_from: str | None, date_to: str | None) -> None:
    settings = get_settings()
    database = Database(settings.database_url)
    try:
        await database.create_all()
        service = build_rate_service(settings, SqlRateStore(database))
        averages = await service.compute_averages(
            parse_iso_date(date_from) if date_from else None,
            parse_iso_date(date_to) if date_to else None,
        )
    finally:
        await database.dispose()

    weekly, monthly = averages.weekly, averages.monthly
    if weekly:
        print(f"Week {weekly.iso_year}-W{weekly.iso_week:02d}: {weekly.value} ({weekly.record_count} days)")
    else:
        print("Week: no records")
    if monthly:
        print(f"Month {monthly.year}-{monthly.month:02d}: {monthly.value} ({monthly.record_count} days)")
    else:
        print("Month: no records")


def main() -> None:
    parser = argparse.ArgumentParser(description="Average stored DOF rates by ISO week and month")
    parser.add_argument("--from", dest="date_from")
    parser.add_argument("--to", dest="date_to")
    args = parser.parse_args()
    setup_logging(get_settings().log_level)
    asyncio.run(_run(args.date_from, args.date_to))


if __name__ == "__main__":
    main()
