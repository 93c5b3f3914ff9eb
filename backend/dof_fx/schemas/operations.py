"""Pydantic schemas for FX operations."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field

from dof_fx.domain import Direction, OperationStatus, RateKind, ResolvedRate, StoredOperation
from dof_fx.services.operations import OperationRequest, RateInput

LOOKUP_DATE_PATTERN = r"^(\d{4}-\d{2}-\d{2}|today|hoy)$"


class RateInputSchema(BaseModel):
    kind: RateKind = Field(..., examples=["PUBLISHED", "MANUAL"])
    date: str | None = Field(
        default=None,
        pattern=LOOKUP_DATE_PATTERN,
        description="YYYY-MM-DD or 'today'; PUBLISHED only",
    )
    value: Decimal | None = Field(default=None, description="Required for MANUAL")

    def to_domain(self) -> RateInput:
        return RateInput(kind=self.kind, date=self.date, value=self.value)


class OperationCreateRequest(BaseModel):
    direction: Direction
    usd_amount: Decimal = Field(..., gt=0, examples=[800])
    base: RateInputSchema
    comparison: RateInputSchema
    operation_date: dt.date
    concept: str | None = Field(default=None, max_length=255)
    counterparty: str | None = Field(default=None, max_length=255)
    notes: str | None = None

    def to_domain(self) -> OperationRequest:
        return OperationRequest(
            direction=self.direction,
            usd_amount=self.usd_amount,
            base=self.base.to_domain(),
            comparison=self.comparison.to_domain(),
            operation_date=self.operation_date,
            concept=self.concept,
            counterparty=self.counterparty,
            notes=self.notes,
        )


class ResolvedRateSchema(BaseModel):
    kind: RateKind
    value: float
    requested_date: dt.date | None = None
    effective_date: dt.date | None = None
    note: str | None = None

    @classmethod
    def from_domain(cls, rate: ResolvedRate) -> "ResolvedRateSchema":
        return cls(
            kind=rate.kind,
            value=float(rate.value),
            requested_date=rate.requested_date,
            effective_date=rate.effective_date,
            note=rate.note,
        )


class OperationSchema(BaseModel):
    id: str
    position: int
    status: OperationStatus
    created_at: dt.datetime
    direction: Direction
    operation_date: dt.date
    usd_amount: float
    base_rate: ResolvedRateSchema
    comparison_rate: ResolvedRateSchema
    base_amount_local: float
    comparison_amount_local: float
    profit_loss_local: float
    profit_loss_percent: float
    concept: str | None = None
    counterparty: str | None = None
    notes: str | None = None

    @classmethod
    def from_domain(cls, stored: StoredOperation) -> "OperationSchema":
        entry = stored.entry
        result = entry.result
        return cls(
            id=stored.id,
            position=stored.position,
            status=stored.status,
            created_at=stored.created_at,
            direction=result.direction,
            operation_date=entry.operation_date,
            usd_amount=float(result.usd_amount),
            base_rate=ResolvedRateSchema.from_domain(result.base_rate),
            comparison_rate=ResolvedRateSchema.from_domain(result.comparison_rate),
            base_amount_local=float(result.base_amount_local),
            comparison_amount_local=float(result.comparison_amount_local),
            profit_loss_local=float(result.profit_loss_local),
            profit_loss_percent=float(result.profit_loss_percent),
            concept=entry.concept,
            counterparty=entry.counterparty,
            notes=entry.notes,
        )


class OperationListResponse(BaseModel):
    total: int
    items: list[OperationSchema]


__all__ = [
    "OperationCreateRequest",
    "OperationListResponse",
    "OperationSchema",
    "RateInputSchema",
    "ResolvedRateSchema",
]
