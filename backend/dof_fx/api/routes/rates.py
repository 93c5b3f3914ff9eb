"""Exchange-rate lookup, registration and averages endpoints."""

from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException, Query, status

from dof_fx.api.dependencies import get_rate_service
from dof_fx.domain import RateRecord
from dof_fx.schemas import (
    AveragesResponse,
    RateLookupResponse,
    RateRegisterRequest,
    RateRegisterResponse,
)
from dof_fx.services.facade import RateService

router = APIRouter()


@router.get("/tipo-cambio", response_model=RateLookupResponse)
async def get_rate(
    fecha: dt.date = Query(..., description="Publication date, YYYY-MM-DD"),
    service: RateService = Depends(get_rate_service),
) -> RateLookupResponse:
    """Resolve the DOF rate for ``fecha`` and reconcile it against Banxico FIX."""

    lookup = await service.lookup_published(fecha)
    return RateLookupResponse.from_lookup(lookup)


@router.post("/registrar", response_model=RateRegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_rate(
    payload: RateRegisterRequest,
    service: RateService = Depends(get_rate_service),
) -> RateRegisterResponse:
    record_date = payload.date or service.today()
    outcome = await service.register(
        RateRecord(
            date=record_date,
            rate=payload.rate,
            source=payload.source,
            published_at=payload.published_at,
            validation_note=payload.validation_note,
        )
    )
    if not outcome.accepted:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": outcome.message, "date": record_date.isoformat()},
        )
    return RateRegisterResponse(message=outcome.message, date=record_date, rate=float(payload.rate))


@router.get("/promedios", response_model=AveragesResponse)
async def get_averages(
    date_from: dt.date | None = Query(default=None, alias="from"),
    date_to: dt.date | None = Query(default=None, alias="to"),
    service: RateService = Depends(get_rate_service),
) -> AveragesResponse:
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="'from' must not be after 'to'")
    averages = await service.compute_averages(date_from, date_to)
    return AveragesResponse.from_domain(averages)


__all__ = ["router"]
