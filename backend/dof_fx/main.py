"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from dof_fx.api.routes import api_router
from dof_fx.config import AppSettings, get_settings
from dof_fx.core.logging import setup_logging
from dof_fx.core.telemetry import setup_telemetry
from dof_fx.db import Database
from dof_fx.errors import InvalidManualRate, RateUnavailable, ResolutionTimeout, UpstreamUnavailable
from dof_fx.services.facade import RateService, build_rate_service
from dof_fx.storage import SqlRateStore

logger = logging.getLogger(__name__)

SERVICE_NAME = "tc-dof-microservice"


def _error(status_code: int, error: str, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RateUnavailable)
    async def _rate_unavailable(_request: Request, exc: RateUnavailable) -> JSONResponse:
        return _error(
            status.HTTP_404_NOT_FOUND,
            str(exc),
            requested_date=exc.requested_date.isoformat(),
            attempts=exc.attempts,
        )

    @app.exception_handler(InvalidManualRate)
    async def _invalid_manual(_request: Request, exc: InvalidManualRate) -> JSONResponse:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))

    @app.exception_handler(UpstreamUnavailable)
    async def _upstream(_request: Request, exc: UpstreamUnavailable) -> JSONResponse:
        code = status.HTTP_504_GATEWAY_TIMEOUT if isinstance(exc, ResolutionTimeout) else status.HTTP_503_SERVICE_UNAVAILABLE
        logger.error("Upstream unavailable for %s: %s", exc.requested_date.isoformat(), exc)
        return _error(code, str(exc), requested_date=exc.requested_date.isoformat())


def create_app(
    settings: AppSettings | None = None,
    database: Database | None = None,
    service: RateService | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        await database.create_all()
        logger.info("DOF FX service configuration: %s", settings.dict_for_logging())
        yield
        await database.dispose()

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=_lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.rate_service = service or build_rate_service(settings, SqlRateStore(database))

    setup_logging(settings.log_level)
    setup_telemetry(app, settings, engine=database.engine)
    _install_error_handlers(app)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        """Return service readiness metadata."""

        return {
            "status": "ok",
            "timestamp": datetime.now().isoformat(),
            "service": SERVICE_NAME,
            "timezone": settings.timezone,
        }

    app.include_router(api_router)
    return app


app = create_app()

__all__ = ["app", "create_app"]
