"""Durable rate history and operation ledger.

``RateStore`` is the boundary the services depend on; ``SqlRateStore`` backs
it with async SQLAlchemy. Duplicate dates in the rate history are a normal
outcome reported through ``AppendResult``, not an exception.
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Protocol

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import IntegrityError

from dof_fx.db.session import Database
from dof_fx.domain import (
    Direction,
    OperationEntry,
    OperationResult,
    OperationStatus,
    RateKind,
    RateRecord,
    ResolvedRate,
    StoredOperation,
)
from dof_fx.models import FxOperationRow, RateRecordRow

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


def record_hash(record_date: date, rate: Decimal) -> str:
    """MD5 of the date and rate, used to spot edited history rows."""

    return hashlib.md5(f"{record_date.isoformat()}{rate}".encode("utf-8")).hexdigest()


def operation_hash(entry: OperationEntry) -> str:
    result = entry.result
    payload = "|".join(
        [
            result.direction.value,
            entry.operation_date.isoformat(),
            str(result.usd_amount),
            str(result.base_rate.value),
            str(result.comparison_rate.value),
            str(result.profit_loss_local),
        ]
    )
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class AppendResult:
    accepted: bool
    message: str


@dataclass(frozen=True)
class OperationFilter:
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    direction: Optional[Direction] = None
    status: Optional[OperationStatus] = None
    query: Optional[str] = None
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    def __post_init__(self) -> None:
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if self.offset < 0:
            raise ValueError("offset must be zero or greater")


@dataclass(frozen=True)
class OperationPage:
    total: int
    items: list[StoredOperation] = field(default_factory=list)


class RateStore(Protocol):
    async def append_record(self, record: RateRecord) -> AppendResult: ...

    async def list_records(
        self, date_from: date | None = None, date_to: date | None = None
    ) -> list[RateRecord]: ...

    async def append_operation(self, entry: OperationEntry) -> StoredOperation: ...

    async def list_operations(self, criteria: OperationFilter) -> OperationPage: ...


class SqlRateStore:
    """``RateStore`` on top of a :class:`Database`."""

    def __init__(self, database: Database) -> None:
        self._database = database

    async def append_record(self, record: RateRecord) -> AppendResult:
        async with self._database.session() as session:
            existing = await session.scalar(
                select(RateRecordRow.id).where(RateRecordRow.rate_date == record.date)
            )
            if existing is not None:
                logger.info("Rate record for %s already exists", record.date.isoformat())
                return AppendResult(accepted=False, message="Date already registered")

            digest = record_hash(record.date, record.rate)
            session.add(
                RateRecordRow(
                    rate_date=record.date,
                    rate=record.rate,
                    source=record.source,
                    published_at=record.published_at,
                    record_hash=digest,
                    validation_note=record.validation_note,
                )
            )
            try:
                await session.commit()
            except IntegrityError:
                # A concurrent insert won the unique constraint on the date.
                await session.rollback()
                logger.info("Rate record for %s inserted concurrently", record.date.isoformat())
                return AppendResult(accepted=False, message="Date already registered")

        logger.info("Rate record stored for %s (hash %s)", record.date.isoformat(), digest)
        return AppendResult(accepted=True, message="Record stored")

    async def list_records(self, date_from: date | None = None, date_to: date | None = None) -> list[RateRecord]:
        stmt = select(RateRecordRow).order_by(RateRecordRow.rate_date)
        if date_from is not None:
            stmt = stmt.where(RateRecordRow.rate_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(RateRecordRow.rate_date <= date_to)
        async with self._database.session() as session:
            rows = (await session.scalars(stmt)).all()
        return [_to_record(row) for row in rows]

    async def append_operation(self, entry: OperationEntry) -> StoredOperation:
        result = entry.result
        row = FxOperationRow(
            id=uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            direction=result.direction,
            concept=entry.concept,
            counterparty=entry.counterparty,
            operation_date=entry.operation_date,
            usd_amount=result.usd_amount,
            base_kind=result.base_rate.kind,
            base_requested_date=result.base_rate.requested_date,
            base_effective_date=result.base_rate.effective_date,
            base_value=result.base_rate.value,
            base_note=result.base_rate.note,
            comparison_kind=result.comparison_rate.kind,
            comparison_requested_date=result.comparison_rate.requested_date,
            comparison_effective_date=result.comparison_rate.effective_date,
            comparison_value=result.comparison_rate.value,
            comparison_note=result.comparison_rate.note,
            base_amount_local=result.base_amount_local,
            comparison_amount_local=result.comparison_amount_local,
            profit_loss_local=result.profit_loss_local,
            profit_loss_percent=result.profit_loss_percent,
            status=OperationStatus.PENDING,
            notes=entry.notes,
            content_hash=operation_hash(entry),
        )
        async with self._database.session() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
        logger.info("FX operation %s stored at position %d", row.id, row.position)
        return StoredOperation(
            id=row.id,
            position=row.position,
            status=row.status,
            created_at=row.created_at,
            entry=entry,
        )

    async def list_operations(self, criteria: OperationFilter) -> OperationPage:
        stmt = _apply_filter(select(FxOperationRow), criteria)
        count_stmt = _apply_filter(select(func.count(FxOperationRow.position)), criteria)
        stmt = (
            stmt.order_by(FxOperationRow.operation_date.desc(), FxOperationRow.position.desc())
            .limit(criteria.limit)
            .offset(criteria.offset)
        )
        async with self._database.session() as session:
            total = await session.scalar(count_stmt)
            rows = (await session.scalars(stmt)).all()
        return OperationPage(total=int(total or 0), items=[_to_operation(row) for row in rows])


def _apply_filter(stmt: Select, criteria: OperationFilter) -> Select:
    if criteria.date_from is not None:
        stmt = stmt.where(FxOperationRow.operation_date >= criteria.date_from)
    if criteria.date_to is not None:
        stmt = stmt.where(FxOperationRow.operation_date <= criteria.date_to)
    if criteria.direction is not None:
        stmt = stmt.where(FxOperationRow.direction == criteria.direction)
    if criteria.status is not None:
        stmt = stmt.where(FxOperationRow.status == criteria.status)
    if criteria.query:
        needle = f"%{criteria.query.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(FxOperationRow.concept).like(needle),
                func.lower(FxOperationRow.counterparty).like(needle),
                func.lower(FxOperationRow.notes).like(needle),
            )
        )
    return stmt


def _to_record(row: RateRecordRow) -> RateRecord:
    return RateRecord(
        date=row.rate_date,
        rate=Decimal(str(row.rate)),
        source=row.source,
        published_at=row.published_at,
        validation_note=row.validation_note,
    )


def _resolved(kind: RateKind, value, requested: date | None, effective: date | None, note: str | None) -> ResolvedRate:
    return ResolvedRate(
        kind=kind,
        value=Decimal(str(value)),
        requested_date=requested,
        effective_date=effective,
        note=note,
    )


def _to_operation(row: FxOperationRow) -> StoredOperation:
    result = OperationResult(
        direction=row.direction,
        usd_amount=Decimal(str(row.usd_amount)),
        base_rate=_resolved(
            row.base_kind, row.base_value, row.base_requested_date, row.base_effective_date, row.base_note
        ),
        comparison_rate=_resolved(
            row.comparison_kind,
            row.comparison_value,
            row.comparison_requested_date,
            row.comparison_effective_date,
            row.comparison_note,
        ),
        base_amount_local=Decimal(str(row.base_amount_local)),
        comparison_amount_local=Decimal(str(row.comparison_amount_local)),
        profit_loss_local=Decimal(str(row.profit_loss_local)),
        profit_loss_percent=Decimal(str(row.profit_loss_percent)),
    )
    entry = OperationEntry(
        result=result,
        operation_date=row.operation_date,
        concept=row.concept,
        counterparty=row.counterparty,
        notes=row.notes,
    )
    return StoredOperation(
        id=row.id,
        position=row.position,
        status=row.status,
        created_at=row.created_at,
        entry=entry,
    )


__all__ = [
    "AppendResult",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "OperationFilter",
    "OperationPage",
    "RateStore",
    "SqlRateStore",
    "operation_hash",
    "record_hash",
]
