"""FX operation endpoints."""

from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException, Query, status

from dof_fx.api.dependencies import get_rate_service
from dof_fx.domain import Direction, OperationStatus
from dof_fx.schemas import OperationCreateRequest, OperationListResponse, OperationSchema
from dof_fx.services.facade import RateService
from dof_fx.storage import OperationFilter
from dof_fx.storage.store import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter()


@router.post("", response_model=OperationSchema, status_code=status.HTTP_201_CREATED)
async def create_operation(
    payload: OperationCreateRequest,
    service: RateService = Depends(get_rate_service),
) -> OperationSchema:
    """Resolve both rates, compute P&L and append the operation to the ledger."""

    stored = await service.create_operation(payload.to_domain())
    return OperationSchema.from_domain(stored)


@router.get("", response_model=OperationListResponse)
async def list_operations(
    date_from: dt.date | None = Query(default=None, alias="from"),
    date_to: dt.date | None = Query(default=None, alias="to"),
    direction: Direction | None = None,
    status_filter: OperationStatus | None = Query(default=None, alias="status"),
    q: str | None = Query(default=None, description="Search concept, counterparty and notes"),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    service: RateService = Depends(get_rate_service),
) -> OperationListResponse:
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="'from' must not be after 'to'")
    page = await service.list_operations(
        OperationFilter(
            date_from=date_from,
            date_to=date_to,
            direction=direction,
            status=status_filter,
            query=q,
            limit=limit,
            offset=offset,
        )
    )
    return OperationListResponse(total=page.total, items=[OperationSchema.from_domain(op) for op in page.items])


__all__ = ["router"]
