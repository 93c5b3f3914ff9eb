"""Exception taxonomy for the rate resolution pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence


class DofFxError(RuntimeError):
    """Base class for errors raised by the package."""


class FetchError(DofFxError):
    """Raised when a source URL cannot be reached or answers with an error."""

    def __init__(self, source_url: str, message: str) -> None:
        super().__init__(f"{source_url}: {message}")
        self.source_url = source_url


@dataclass(frozen=True)
class AttemptOutcome:
    """One source URL tried for one candidate date."""

    candidate_date: date
    source_url: str
    outcome: str


class UpstreamUnavailable(FetchError):
    """Every source failed for every candidate date tried."""

    def __init__(self, requested_date: date, trail: Sequence[AttemptOutcome], message: str | None = None) -> None:
        super().__init__(
            "*",
            message or f"no DOF source reachable while resolving {requested_date.isoformat()}",
        )
        self.requested_date = requested_date
        self.trail = list(trail)


class ResolutionTimeout(UpstreamUnavailable):
    """The caller's overall deadline elapsed before resolution finished."""

    def __init__(self, requested_date: date, deadline_seconds: float, trail: Sequence[AttemptOutcome]) -> None:
        super().__init__(
            requested_date,
            trail,
            f"rate resolution for {requested_date.isoformat()} exceeded {deadline_seconds:g}s",
        )
        self.deadline_seconds = deadline_seconds


class RateUnavailable(DofFxError):
    """No published value exists for the date or the business days tried before it."""

    def __init__(self, requested_date: date, attempts: int, trail: Sequence[AttemptOutcome] = ()) -> None:
        super().__init__(
            f"No DOF exchange rate found for {requested_date.isoformat()} "
            f"after {attempts} attempt(s). Try a different date or a MANUAL rate."
        )
        self.requested_date = requested_date
        self.attempts = attempts
        self.trail = list(trail)


class InvalidManualRate(DofFxError):
    """A MANUAL rate input is missing or not strictly positive."""

    def __init__(self, value: Decimal | None) -> None:
        super().__init__("MANUAL rates require a value greater than zero")
        self.value = value


class BanxicoError(DofFxError):
    """Raised when the Banxico SIE API returns an unusable response."""


__all__ = [
    "AttemptOutcome",
    "BanxicoError",
    "DofFxError",
    "FetchError",
    "InvalidManualRate",
    "RateUnavailable",
    "ResolutionTimeout",
    "UpstreamUnavailable",
]
