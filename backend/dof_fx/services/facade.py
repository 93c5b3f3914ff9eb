"""Entry points used by the HTTP layer and the CLI scripts."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from functools import partial
from typing import Callable, Optional

import httpx

from dof_fx.config import AppSettings
from dof_fx.core.dates import today_in
from dof_fx.domain import (
    Averages,
    Direction,
    DivergenceResult,
    OperationResult,
    RateKind,
    RateRecord,
    ResolvedRate,
    StoredOperation,
)
from dof_fx.parsing import RateExtractor, RowPatternExtractor
from dof_fx.providers import BanxicoClient, DOFDocumentFetcher
from dof_fx.services.averages import load_averages
from dof_fx.services.cross_validation import CrossValidator, validation_note
from dof_fx.services.operations import OperationRequest, OperationResolver, RateInput
from dof_fx.services.rate_resolver import RateResolver
from dof_fx.storage import AppendResult, OperationFilter, OperationPage, RateStore

logger = logging.getLogger(__name__)

DOF_SOURCE_LABEL = "DOF"


@dataclass(frozen=True)
class RateLookup:
    """A published rate together with its FIX reconciliation."""

    resolved: ResolvedRate
    fix_rate: Optional[Decimal]
    divergence: Optional[DivergenceResult]
    validation_note: str
    source: str
    published_at: str

    def as_record(self) -> RateRecord:
        return RateRecord(
            date=self.resolved.effective_date,
            rate=self.resolved.value,
            source=self.source,
            published_at=self.published_at,
            validation_note=self.validation_note,
        )


class RateService:
    def __init__(
        self,
        resolver: RateResolver,
        cross_validator: CrossValidator,
        store: RateStore,
        *,
        today: Callable[[], date],
        publication_time: str = "12:00",
    ) -> None:
        self.resolver = resolver
        self.cross_validator = cross_validator
        self.store = store
        self.today = today
        self.publication_time = publication_time
        self.operations = OperationResolver(resolver, today)

    async def lookup_published(self, requested: date, *, deadline_seconds: float | None = None) -> RateLookup:
        """Resolve the DOF rate and, alongside it, the FIX for the same day.

        ``deadline_seconds`` overrides the configured resolution budget.
        """

        fix_task = asyncio.create_task(self.cross_validator.secondary_rate(requested))
        try:
            resolved = await self.resolver.resolve(requested, deadline_seconds=deadline_seconds)
        except Exception:
            fix_task.cancel()
            await asyncio.gather(fix_task, return_exceptions=True)
            raise

        if resolved.effective_date == requested:
            fix_rate = await fix_task
        else:
            # The DOF value belongs to an earlier day; compare against that day's FIX.
            fix_task.cancel()
            await asyncio.gather(fix_task, return_exceptions=True)
            fix_rate = await self.cross_validator.secondary_rate(resolved.effective_date)

        divergence = self.cross_validator.assess(resolved.value, fix_rate, resolved.effective_date)
        return RateLookup(
            resolved=resolved,
            fix_rate=fix_rate,
            divergence=divergence,
            validation_note=validation_note(divergence),
            source=DOF_SOURCE_LABEL,
            published_at=self.publication_time,
        )

    async def resolve_rate(
        self,
        on_date: str | None = None,
        manual_value: Decimal | None = None,
        *,
        deadline_seconds: float | None = None,
    ) -> ResolvedRate:
        if manual_value is not None:
            rate_input = RateInput(kind=RateKind.MANUAL, value=manual_value)
        else:
            rate_input = RateInput(kind=RateKind.PUBLISHED, date=on_date)
        return await self.operations.resolve_rate(rate_input, deadline_seconds=deadline_seconds)

    async def compute_operation(
        self,
        direction: Direction,
        usd_amount: Decimal,
        base: RateInput,
        comparison: RateInput,
        *,
        deadline_seconds: float | None = None,
    ) -> OperationResult:
        return await self.operations.compute_operation(
            direction, usd_amount, base, comparison, deadline_seconds=deadline_seconds
        )

    async def create_operation(
        self, request: OperationRequest, *, deadline_seconds: float | None = None
    ) -> StoredOperation:
        return await self.operations.create_operation(request, self.store, deadline_seconds=deadline_seconds)

    async def list_operations(self, criteria: OperationFilter) -> OperationPage:
        return await self.store.list_operations(criteria)

    async def register(self, record: RateRecord) -> AppendResult:
        return await self.store.append_record(record)

    async def compute_averages(self, from_date: date | None = None, to_date: date | None = None) -> Averages:
        return await load_averages(self.store, self.today, from_date, to_date)


def build_rate_service(
    settings: AppSettings,
    store: RateStore,
    *,
    http_client: httpx.AsyncClient | None = None,
    extractor: RateExtractor | None = None,
    today: Callable[[], date] | None = None,
) -> RateService:
    """Wire the pipeline from settings; every collaborator is explicit."""

    fetcher = DOFDocumentFetcher.from_settings(settings, client=http_client)
    resolver = RateResolver(
        fetcher,
        extractor or RowPatternExtractor(),
        max_attempts=settings.resolver_max_attempts,
        deadline_seconds=settings.resolution_deadline_seconds,
    )
    cross_validator = CrossValidator(
        BanxicoClient.from_settings(settings, client=http_client),
        settings.divergence_threshold_pct,
    )
    return RateService(
        resolver,
        cross_validator,
        store,
        today=today or partial(today_in, settings.timezone),
        publication_time=settings.publication_time,
    )


__all__ = ["DOF_SOURCE_LABEL", "RateLookup", "RateService", "build_rate_service"]
