"""Value types shared by the resolution pipeline and the analytics helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class RateKind(str, Enum):
    PUBLISHED = "PUBLISHED"
    MANUAL = "MANUAL"


class Direction(str, Enum):
    RECEIVE_USD = "RECEIVE_USD"
    PAY_USD = "PAY_USD"


class OperationStatus(str, Enum):
    PENDING = "PENDING"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class RateRecord:
    """A published rate as stored in the rate history."""

    date: date
    rate: Decimal
    source: str = "DOF"
    published_at: str = "12:00"
    validation_note: str = "OK"

    def __post_init__(self) -> None:
        if self.rate <= 0:
            raise ValueError("rate must be greater than zero")


@dataclass(frozen=True)
class ResolvedRate:
    """A rate ready to be used in a calculation, either published or manual."""

    kind: RateKind
    value: Decimal
    requested_date: Optional[date] = None
    effective_date: Optional[date] = None
    note: Optional[str] = None
    attempts: int = 0

    def __post_init__(self) -> None:
        if self.value <= 0:
            raise ValueError("resolved rate value must be greater than zero")
        if self.kind is RateKind.PUBLISHED and self.effective_date is None:
            raise ValueError("published rates need an effective date")

    @property
    def fell_back(self) -> bool:
        return (
            self.kind is RateKind.PUBLISHED
            and self.requested_date is not None
            and self.requested_date != self.effective_date
        )


@dataclass(frozen=True)
class DivergenceResult:
    primary: Decimal
    secondary: Decimal
    threshold_percent: Decimal
    percent_difference: Decimal
    exceeds_threshold: bool


@dataclass(frozen=True)
class OperationResult:
    """Converted amounts and signed P&L for one USD operation."""

    direction: Direction
    usd_amount: Decimal
    base_rate: ResolvedRate
    comparison_rate: ResolvedRate
    base_amount_local: Decimal
    comparison_amount_local: Decimal
    profit_loss_local: Decimal
    profit_loss_percent: Decimal


@dataclass(frozen=True)
class OperationEntry:
    """An operation result with the bookkeeping fields captured on creation."""

    result: OperationResult
    operation_date: date
    concept: Optional[str] = None
    counterparty: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class StoredOperation:
    id: str
    position: int
    status: OperationStatus
    created_at: datetime
    entry: OperationEntry


@dataclass(frozen=True)
class WeeklyAverage:
    iso_year: int
    iso_week: int
    value: Decimal
    record_count: int


@dataclass(frozen=True)
class MonthlyAverage:
    year: int
    month: int
    value: Decimal
    record_count: int


@dataclass(frozen=True)
class Averages:
    weekly: Optional[WeeklyAverage]
    monthly: Optional[MonthlyAverage]


__all__ = [
    "Averages",
    "Direction",
    "DivergenceResult",
    "MonthlyAverage",
    "OperationEntry",
    "OperationResult",
    "OperationStatus",
    "RateKind",
    "RateRecord",
    "ResolvedRate",
    "StoredOperation",
    "WeeklyAverage",
]
