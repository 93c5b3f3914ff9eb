"""Banxico SIE client used to read the FIX rate (series SF43718)."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol

import httpx

from dof_fx.config import AppSettings
from dof_fx.config.settings import DEFAULT_BANXICO_BASE_URL
from dof_fx.errors import BanxicoError

logger = logging.getLogger(__name__)

FIX_SERIES = "SF43718"


class SecondaryRateSource(Protocol):
    """Anything able to provide an independent rate for a date."""

    @property
    def configured(self) -> bool: ...

    async def get_rate_for_date(self, on_date: date) -> Decimal | None: ...


class BanxicoClient:
    """Thin async wrapper over ``/series/{id}/datos/{start}/{end}``."""

    def __init__(
        self,
        token: str | None,
        *,
        base_url: str = DEFAULT_BANXICO_BASE_URL,
        series: str = FIX_SERIES,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._series = series
        self._timeout_seconds = timeout_seconds
        self._client = client

    @classmethod
    def from_settings(cls, settings: AppSettings, client: httpx.AsyncClient | None = None) -> "BanxicoClient":
        return cls(
            settings.banxico_token,
            base_url=settings.banxico_base_url,
            series=settings.banxico_series,
            timeout_seconds=settings.banxico_timeout_seconds,
            client=client,
        )

    @property
    def configured(self) -> bool:
        return bool(self._token)

    async def get_rate_for_date(self, on_date: date) -> Decimal | None:
        if not self._token:
            logger.info("Banxico token not configured, skipping FIX lookup")
            return None

        day = on_date.isoformat()
        url = f"{self._base_url}/{self._series}/datos/{day}/{day}"
        headers = {"Bmx-Token": self._token, "Accept": "application/json"}
        logger.info("Requesting Banxico FIX for %s", day)
        try:
            if self._client is not None:
                response = await self._client.get(url, headers=headers, timeout=self._timeout_seconds)
            else:
                async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                    response = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise BanxicoError(f"Failed to reach Banxico: {exc}") from exc

        if response.status_code == 404:
            logger.info("Banxico has no data for %s (404)", day)
            return None
        if response.status_code >= 400:
            raise BanxicoError(f"Banxico error {response.status_code}: {response.text[:200]}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise BanxicoError("Banxico returned invalid JSON payload") from exc
        return _parse_fix(payload, day)


def _parse_fix(payload: Any, day: str) -> Decimal | None:
    try:
        series = payload["bmx"]["series"]
    except (KeyError, TypeError) as exc:
        raise BanxicoError("Banxico payload is missing bmx.series") from exc

    datos = series[0].get("datos") if series else None
    if not datos:
        logger.warning("No FIX value in Banxico for %s", day)
        return None

    raw = str(datos[0].get("dato", "")).strip().replace(",", ".")
    try:
        value = Decimal(raw)
    except InvalidOperation:
        # SIE reports unpublished days as "N/E"
        logger.warning("Banxico value for %s is not a number: %r", day, raw)
        return None
    return value if value.is_finite() and value > 0 else None


__all__ = ["BanxicoClient", "FIX_SERIES", "SecondaryRateSource"]
