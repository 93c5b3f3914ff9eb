"""Resolve the two rates of an FX operation and price it."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from dof_fx.core.dates import parse_iso_date
from dof_fx.domain import (
    Direction,
    OperationEntry,
    OperationResult,
    RateKind,
    ResolvedRate,
    StoredOperation,
)
from dof_fx.errors import InvalidManualRate
from dof_fx.services.pnl import calculate_pnl
from dof_fx.services.rate_resolver import RateResolver
from dof_fx.storage import RateStore

logger = logging.getLogger(__name__)

TODAY_TOKENS = frozenset({"today", "hoy"})


@dataclass(frozen=True)
class RateInput:
    """How one side of an operation gets its rate.

    ``PUBLISHED`` looks the date up in the DOF (``None``/``"today"`` means
    today); ``MANUAL`` uses ``value`` as given.
    """

    kind: RateKind
    date: Optional[str] = None
    value: Optional[Decimal] = None


@dataclass(frozen=True)
class OperationRequest:
    direction: Direction
    usd_amount: Decimal
    base: RateInput
    comparison: RateInput
    operation_date: date
    concept: Optional[str] = None
    counterparty: Optional[str] = None
    notes: Optional[str] = None


class OperationResolver:
    def __init__(self, resolver: RateResolver, today: Callable[[], date]) -> None:
        self.resolver = resolver
        self._today = today

    def lookup_date(self, raw: str | None) -> date:
        if raw is None or raw.strip().lower() in TODAY_TOKENS:
            return self._today()
        return parse_iso_date(raw)

    async def resolve_rate(
        self, rate_input: RateInput, *, deadline_seconds: float | None = None
    ) -> ResolvedRate:
        """Resolve one side; ``deadline_seconds`` bounds the whole DOF fallback loop."""

        if rate_input.kind is RateKind.MANUAL:
            value = rate_input.value
            if value is None or not value.is_finite() or value <= 0:
                raise InvalidManualRate(value)
            logger.info("Using manual rate %s", value)
            return ResolvedRate(kind=RateKind.MANUAL, value=value)

        lookup = self.lookup_date(rate_input.date)
        logger.info("Resolving DOF rate for %s", lookup.isoformat())
        return await self.resolver.resolve(lookup, deadline_seconds=deadline_seconds)

    async def resolve_pair(
        self,
        base: RateInput,
        comparison: RateInput,
        *,
        deadline_seconds: float | None = None,
    ) -> tuple[ResolvedRate, ResolvedRate]:
        """Resolve both inputs concurrently; a failure on one side cancels the other."""

        tasks = [
            asyncio.create_task(self.resolve_rate(base, deadline_seconds=deadline_seconds)),
            asyncio.create_task(self.resolve_rate(comparison, deadline_seconds=deadline_seconds)),
        ]
        try:
            base_rate, comparison_rate = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return base_rate, comparison_rate

    async def compute_operation(
        self,
        direction: Direction,
        usd_amount: Decimal,
        base: RateInput,
        comparison: RateInput,
        *,
        deadline_seconds: float | None = None,
    ) -> OperationResult:
        base_rate, comparison_rate = await self.resolve_pair(base, comparison, deadline_seconds=deadline_seconds)
        return calculate_pnl(direction, usd_amount, base_rate, comparison_rate)

    async def create_operation(
        self,
        request: OperationRequest,
        store: RateStore,
        *,
        deadline_seconds: float | None = None,
    ) -> StoredOperation:
        result = await self.compute_operation(
            request.direction,
            request.usd_amount,
            request.base,
            request.comparison,
            deadline_seconds=deadline_seconds,
        )
        entry = OperationEntry(
            result=result,
            operation_date=request.operation_date,
            concept=request.concept,
            counterparty=request.counterparty,
            notes=request.notes,
        )
        stored = await store.append_operation(entry)
        logger.info(
            "FX operation %s created: %s %s USD, P&L %s MXN (%s%%)",
            stored.id,
            result.direction.value,
            result.usd_amount,
            result.profit_loss_local,
            result.profit_loss_percent,
        )
        return stored


__all__ = ["OperationRequest", "OperationResolver", "RateInput", "TODAY_TOKENS"]
