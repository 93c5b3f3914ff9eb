"""Reconcile a DOF rate against Banxico's FIX for the same date."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from dof_fx.core.telemetry import pipeline_instruments
from dof_fx.domain import DivergenceResult
from dof_fx.errors import BanxicoError
from dof_fx.providers.banxico import SecondaryRateSource

logger = logging.getLogger(__name__)

VALIDATION_OK = "OK"
VALIDATION_DIVERGENT = "DIF_DOF_BANX"


def compare(primary: Decimal, secondary: Decimal, threshold_percent: Decimal) -> DivergenceResult:
    """Relative gap between two rates, in percent of ``secondary``."""

    if secondary <= 0:
        raise ValueError("secondary rate must be greater than zero")
    percent = abs(primary - secondary) / secondary * 100
    return DivergenceResult(
        primary=primary,
        secondary=secondary,
        threshold_percent=threshold_percent,
        percent_difference=percent,
        exceeds_threshold=percent > threshold_percent,
    )


def validation_note(result: DivergenceResult | None) -> str:
    if result is not None and result.exceeds_threshold:
        return VALIDATION_DIVERGENT
    return VALIDATION_OK


class CrossValidator:
    """Optional second opinion on a resolved rate.

    Missing credentials, missing data and upstream errors all mean "no
    divergence data" and never interrupt the primary lookup.
    """

    def __init__(self, source: SecondaryRateSource, threshold_percent: Decimal) -> None:
        self.source = source
        self.threshold_percent = threshold_percent

    @property
    def enabled(self) -> bool:
        return self.source.configured

    async def secondary_rate(self, on_date: date) -> Decimal | None:
        if not self.enabled:
            return None
        try:
            return await self.source.get_rate_for_date(on_date)
        except BanxicoError as exc:
            logger.error("Banxico lookup for %s failed: %s", on_date.isoformat(), exc)
            return None

    def assess(self, primary: Decimal, secondary: Decimal | None, on_date: date) -> DivergenceResult | None:
        if secondary is None:
            return None
        result = compare(primary, secondary, self.threshold_percent)
        if result.exceeds_threshold:
            pipeline_instruments().divergences.add(1)
            logger.warning(
                "DOF %s vs FIX %s on %s differ by %.4f%% (threshold %s%%)",
                primary,
                secondary,
                on_date.isoformat(),
                result.percent_difference,
                self.threshold_percent,
            )
        return result

    async def validate(self, primary: Decimal, on_date: date) -> DivergenceResult | None:
        secondary = await self.secondary_rate(on_date)
        return self.assess(primary, secondary, on_date)


__all__ = [
    "CrossValidator",
    "VALIDATION_DIVERGENT",
    "VALIDATION_OK",
    "compare",
    "validation_note",
]
