"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from dof_fx.services.facade import RateService


def get_rate_service(request: Request) -> RateService:
    return request.app.state.rate_service


__all__ = ["get_rate_service"]
