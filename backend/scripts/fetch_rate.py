"""CLI wrapper for DOF rate lookups, optionally storing the results."""

from __future__ import annotations

import argparse
import asyncio

from dof_fx.config import get_settings
from dof_fx.core.dates import date_range, is_weekend, parse_iso_date
from dof_fx.core.logging import setup_logging
from dof_fx.db import Database
from dof_fx.errors import RateUnavailable
from dof_fx.services.facade import RateService, build_rate_service
from dof_fx.storage import SqlRateStore


async def _lookup(service: RateService, requested, register: bool) -> None:
    lookup = await service.lookup_published(requested)
    resolved = lookup.resolved
    print(f"{resolved.effective_date.isoformat()} DOF {resolved.value} ({lookup.validation_note})")
    if resolved.note:
        print(f"  note: {resolved.note}")
    if lookup.fix_rate is not None:
        print(f"  FIX {lookup.fix_rate}")
    if register:
        outcome = await service.register(lookup.as_record())
        print(f"  register: {outcome.message}")


async def _run(raw_date: str | None, raw_until: str | None, register: bool) -> None:
    settings = get_settings()
    database = Database(settings.database_url)
    try:
        await database.create_all()
        service = build_rate_service(settings, SqlRateStore(database))
        start = parse_iso_date(raw_date) if raw_date else service.today()
        if raw_until is None:
            await _lookup(service, start, register)
            return

        # Backfill: weekdays only, a missing day does not stop the run.
        for day in date_range(start, parse_iso_date(raw_until)):
            if is_weekend(day):
                continue
            try:
                await _lookup(service, day, register)
            except RateUnavailable as exc:
                print(f"{day.isoformat()} skipped: {exc}")
    finally:
        await database.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Resolve the DOF USD/MXN rate for a date or a range")
    parser.add_argument("--date", help="YYYY-MM-DD, defaults to today in the configured time zone")
    parser.add_argument("--until", help="YYYY-MM-DD; look up every weekday from --date to this date")
    parser.add_argument("--register", action="store_true", help="Append the results to the rate history")
    args = parser.parse_args()
    setup_logging(get_settings().log_level)
    asyncio.run(_run(args.date, args.until, args.register))


if __name__ == "__main__":
    main()
