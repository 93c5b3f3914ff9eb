"""RateService wiring tests with in-memory collaborators."""

from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from dof_fx.domain import RateKind
from dof_fx.errors import RateUnavailable, ResolutionTimeout
from dof_fx.services.cross_validation import CrossValidator
from dof_fx.services.facade import RateService
from dof_fx.services.rate_resolver import RateResolver

SOURCE = "https://dof.test/indicadores_detalle.php"
OCTOBER = (
    "<tr><td>02/10/2025</td><td>18.2345</td></tr>"
    "<tr><td>03/10/2025</td><td>18.3456</td></tr>"
)


class PageFetcher:
    source_urls = [SOURCE]

    async def fetch(self, source_url: str, year: int, month: int) -> str:
        return OCTOBER if (year, month) == (2025, 10) else ""


class FixTable:
    configured = True

    def __init__(self, values: dict[date, str]) -> None:
        self.values = values
        self.requested: list[date] = []

    async def get_rate_for_date(self, on_date: date) -> Decimal | None:
        self.requested.append(on_date)
        value = self.values.get(on_date)
        return Decimal(value) if value else None


def _service(fix: FixTable) -> RateService:
    return RateService(
        RateResolver(PageFetcher()),
        CrossValidator(fix, Decimal("1.0")),
        store=None,
        today=lambda: date(2025, 10, 3),
    )


@pytest.mark.asyncio
async def test_lookup_compares_against_fix_of_effective_date():
    fix = FixTable({date(2025, 10, 3): "18.3400", date(2025, 10, 4): "25.0000"})

    lookup = await _service(fix).lookup_published(date(2025, 10, 4))

    assert lookup.resolved.effective_date == date(2025, 10, 3)
    assert lookup.fix_rate == Decimal("18.3400")
    assert lookup.validation_note == "OK"
    assert fix.requested[-1] == date(2025, 10, 3)

    record = lookup.as_record()
    assert record.date == date(2025, 10, 3)
    assert record.rate == Decimal("18.3456")
    assert record.source == "DOF"


@pytest.mark.asyncio
async def test_lookup_without_fix_is_ok():
    lookup = await _service(FixTable({})).lookup_published(date(2025, 10, 2))
    assert lookup.fix_rate is None
    assert lookup.divergence is None
    assert lookup.validation_note == "OK"


@pytest.mark.asyncio
async def test_lookup_propagates_unavailable():
    with pytest.raises(RateUnavailable):
        await _service(FixTable({})).lookup_published(date(2025, 11, 12))


@pytest.mark.asyncio
async def test_resolve_rate_accepts_today_or_manual():
    service = _service(FixTable({}))

    published = await service.resolve_rate("today")
    assert published.kind is RateKind.PUBLISHED
    assert published.value == Decimal("18.3456")

    manual = await service.resolve_rate(manual_value=Decimal("18.10"))
    assert manual.kind is RateKind.MANUAL
    assert manual.value == Decimal("18.10")


class StalledFetcher:
    source_urls = [SOURCE]

    async def fetch(self, source_url: str, year: int, month: int) -> str:
        await asyncio.sleep(5)
        return OCTOBER


@pytest.mark.asyncio
async def test_caller_deadline_bounds_lookup_and_resolution():
    service = RateService(
        RateResolver(StalledFetcher()),
        CrossValidator(FixTable({}), Decimal("1.0")),
        store=None,
        today=lambda: date(2025, 10, 3),
    )

    with pytest.raises(ResolutionTimeout) as excinfo:
        await service.lookup_published(date(2025, 10, 2), deadline_seconds=0.05)
    assert excinfo.value.deadline_seconds == 0.05

    with pytest.raises(ResolutionTimeout):
        await service.resolve_rate("2025-10-02", deadline_seconds=0.05)
