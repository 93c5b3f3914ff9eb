"""Route registration helpers."""

from __future__ import annotations

from fastapi import APIRouter

from .operations import router as operations_router
from .rates import router as rates_router

api_router = APIRouter()
api_router.include_router(rates_router, tags=["rates"])
api_router.include_router(operations_router, prefix="/operaciones", tags=["operations"])

__all__ = ["api_router"]
