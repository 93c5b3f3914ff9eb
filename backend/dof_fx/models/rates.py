"""Published rate history."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from dof_fx.db.base import Base


class RateRecordRow(Base):
    __tablename__ = "tc_historico"

    id: Mapped[int] = mapped_column(primary_key=True)
    rate_date: Mapped[date] = mapped_column("fecha", Date, unique=True, index=True)
    rate: Mapped[float] = mapped_column(Numeric(18, 6))
    source: Mapped[str] = mapped_column(String(32), default="DOF")
    published_at: Mapped[str] = mapped_column(String(8), default="12:00")
    record_hash: Mapped[str] = mapped_column(String(32))
    validation_note: Mapped[str] = mapped_column(String(64), default="OK")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
