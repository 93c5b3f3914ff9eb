"""Pydantic schemas for rate lookups, registration and averages."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field

from dof_fx.domain import Averages
from dof_fx.services.facade import RateLookup


class RateLookupResponse(BaseModel):
    date: dt.date = Field(..., description="Date whose publication was used")
    requested_date: dt.date
    rate: float
    fix_rate: float | None = None
    source: str
    published_at: str
    validation_note: str = Field(..., examples=["OK", "DIF_DOF_BANX"])
    divergence_pct: float | None = None
    note: str | None = None
    attempts: int

    @classmethod
    def from_lookup(cls, lookup: RateLookup) -> "RateLookupResponse":
        resolved = lookup.resolved
        return cls(
            date=resolved.effective_date,
            requested_date=resolved.requested_date or resolved.effective_date,
            rate=float(resolved.value),
            fix_rate=float(lookup.fix_rate) if lookup.fix_rate is not None else None,
            source=lookup.source,
            published_at=lookup.published_at,
            validation_note=lookup.validation_note,
            divergence_pct=(
                float(round(lookup.divergence.percent_difference, 4)) if lookup.divergence is not None else None
            ),
            note=resolved.note,
            attempts=resolved.attempts,
        )


class RateRegisterRequest(BaseModel):
    date: dt.date | None = Field(default=None, description="Defaults to today in the service time zone")
    rate: Decimal = Field(..., gt=0, examples=[18.1234])
    source: str = Field(default="DOF")
    published_at: str = Field(default="12:00")
    validation_note: str = Field(default="OK")


class RateRegisterResponse(BaseModel):
    message: str
    date: dt.date
    rate: float


class WeeklyAverageSchema(BaseModel):
    iso_year: int
    iso_week: int
    value: float
    record_count: int


class MonthlyAverageSchema(BaseModel):
    year: int
    month: int
    value: float
    record_count: int


class AveragesResponse(BaseModel):
    weekly: WeeklyAverageSchema | None = None
    monthly: MonthlyAverageSchema | None = None

    @classmethod
    def from_domain(cls, averages: Averages) -> "AveragesResponse":
        weekly = averages.weekly
        monthly = averages.monthly
        return cls(
            weekly=(
                WeeklyAverageSchema(
                    iso_year=weekly.iso_year,
                    iso_week=weekly.iso_week,
                    value=float(weekly.value),
                    record_count=weekly.record_count,
                )
                if weekly
                else None
            ),
            monthly=(
                MonthlyAverageSchema(
                    year=monthly.year,
                    month=monthly.month,
                    value=float(monthly.value),
                    record_count=monthly.record_count,
                )
                if monthly
                else None
            ),
        )


__all__ = [
    "AveragesResponse",
    "MonthlyAverageSchema",
    "RateLookupResponse",
    "RateRegisterRequest",
    "RateRegisterResponse",
    "WeeklyAverageSchema",
]
