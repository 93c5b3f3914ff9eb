"""FX operations with their resolved rates and P&L."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Enum, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dof_fx.db.base import Base
from dof_fx.domain import Direction, OperationStatus, RateKind


class FxOperationRow(Base):
    __tablename__ = "fx_operation"
    __table_args__ = (
        Index("ix_fx_operation_date_direction", "operation_date", "direction"),
    )

    position: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    direction: Mapped[Direction] = mapped_column(Enum(Direction, name="fx_direction"))
    concept: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    counterparty: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    operation_date: Mapped[date] = mapped_column(Date)
    usd_amount: Mapped[float] = mapped_column(Numeric(18, 2))

    base_kind: Mapped[RateKind] = mapped_column(Enum(RateKind, name="fx_rate_kind"))
    base_requested_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    base_effective_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    base_value: Mapped[float] = mapped_column(Numeric(18, 6))
    base_note: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    comparison_kind: Mapped[RateKind] = mapped_column(Enum(RateKind, name="fx_rate_kind"))
    comparison_requested_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    comparison_effective_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    comparison_value: Mapped[float] = mapped_column(Numeric(18, 6))
    comparison_note: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    base_amount_local: Mapped[float] = mapped_column(Numeric(20, 2))
    comparison_amount_local: Mapped[float] = mapped_column(Numeric(20, 2))
    profit_loss_local: Mapped[float] = mapped_column(Numeric(20, 2))
    profit_loss_percent: Mapped[float] = mapped_column(Numeric(12, 3))

    status: Mapped[OperationStatus] = mapped_column(
        Enum(OperationStatus, name="fx_operation_status"), default=OperationStatus.PENDING
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content_hash: Mapped[str] = mapped_column(String(32))
