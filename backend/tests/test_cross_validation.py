"""DOF vs FIX reconciliation and Banxico client tests."""

from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal

import httpx
import pytest

from dof_fx.errors import BanxicoError
from dof_fx.providers import BanxicoClient
from dof_fx.services.cross_validation import (
    VALIDATION_DIVERGENT,
    VALIDATION_OK,
    CrossValidator,
    compare,
    validation_note,
)

BASE_URL = "https://banxico.example/series"


def _sie_payload(dato: str) -> dict[str, object]:
    return {"bmx": {"series": [{"idSerie": "SF43718", "datos": [{"fecha": "01/10/2025", "dato": dato}]}]}}


def _client(handler, token: str | None = "secret") -> BanxicoClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BanxicoClient(token, base_url=BASE_URL, client=http)


class StaticSource:
    def __init__(self, value: Decimal | None, *, configured: bool = True, error: Exception | None = None):
        self._value = value
        self._configured = configured
        self._error = error
        self.requested: list[date] = []

    @property
    def configured(self) -> bool:
        return self._configured

    async def get_rate_for_date(self, on_date: date) -> Decimal | None:
        self.requested.append(on_date)
        if self._error is not None:
            raise self._error
        return self._value


def test_compare_within_threshold():
    result = compare(Decimal("18.40"), Decimal("18.30"), Decimal("1.0"))
    assert not result.exceeds_threshold
    assert result.percent_difference.quantize(Decimal("0.0001")) == Decimal("0.5464")
    assert validation_note(result) == VALIDATION_OK


def test_compare_beyond_threshold():
    result = compare(Decimal("18.80"), Decimal("18.50"), Decimal("1.0"))
    assert result.exceeds_threshold
    assert validation_note(result) == VALIDATION_DIVERGENT


def test_compare_is_strictly_greater_than_threshold():
    result = compare(Decimal("20.20"), Decimal("20.00"), Decimal("1.0"))
    assert result.percent_difference == Decimal("1")
    assert not result.exceeds_threshold


def test_compare_rejects_non_positive_secondary():
    with pytest.raises(ValueError):
        compare(Decimal("18.40"), Decimal("0"), Decimal("1.0"))


def test_missing_comparison_is_ok():
    assert validation_note(None) == VALIDATION_OK


@pytest.mark.asyncio
async def test_validator_logs_divergence(caplog):
    validator = CrossValidator(StaticSource(Decimal("18.50")), Decimal("1.0"))
    with caplog.at_level(logging.WARNING, logger="dof_fx.services.cross_validation"):
        result = await validator.validate(Decimal("18.80"), date(2025, 10, 1))
    assert result is not None and result.exceeds_threshold
    assert "differ by" in caplog.text


@pytest.mark.asyncio
async def test_validator_without_credentials_skips_lookup():
    source = StaticSource(Decimal("18.50"), configured=False)
    validator = CrossValidator(source, Decimal("1.0"))
    assert not validator.enabled
    assert await validator.validate(Decimal("18.80"), date(2025, 10, 1)) is None
    assert source.requested == []


@pytest.mark.asyncio
async def test_validator_swallows_banxico_errors():
    validator = CrossValidator(StaticSource(None, error=BanxicoError("down")), Decimal("1.0"))
    assert await validator.secondary_rate(date(2025, 10, 1)) is None


@pytest.mark.asyncio
async def test_banxico_reads_fix_with_token_header():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_sie_payload("18.3017"))

    value = await _client(handler).get_rate_for_date(date(2025, 10, 1))

    assert value == Decimal("18.3017")
    assert seen[0].headers["Bmx-Token"] == "secret"
    assert seen[0].url.path.endswith("/SF43718/datos/2025-10-01/2025-10-01")


@pytest.mark.asyncio
async def test_banxico_accepts_comma_decimal():
    client = _client(lambda request: httpx.Response(200, json=_sie_payload("18,3017")))
    assert await client.get_rate_for_date(date(2025, 10, 1)) == Decimal("18.3017")


@pytest.mark.asyncio
@pytest.mark.parametrize("dato", ["N/E", "", "0"])
async def test_banxico_unpublished_value_is_none(dato):
    client = _client(lambda request: httpx.Response(200, json=_sie_payload(dato)))
    assert await client.get_rate_for_date(date(2025, 10, 1)) is None


@pytest.mark.asyncio
async def test_banxico_not_found_is_none():
    client = _client(lambda request: httpx.Response(404, text="not found"))
    assert await client.get_rate_for_date(date(2025, 10, 1)) is None


@pytest.mark.asyncio
async def test_banxico_server_error_raises():
    client = _client(lambda request: httpx.Response(500, text="error"))
    with pytest.raises(BanxicoError):
        await client.get_rate_for_date(date(2025, 10, 1))


@pytest.mark.asyncio
async def test_banxico_malformed_payload_raises():
    client = _client(lambda request: httpx.Response(200, content=json.dumps({"other": 1})))
    with pytest.raises(BanxicoError):
        await client.get_rate_for_date(date(2025, 10, 1))


@pytest.mark.asyncio
async def test_banxico_without_token_makes_no_request():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=_sie_payload("18.3017"))

    client = _client(handler, token=None)
    assert not client.configured
    assert await client.get_rate_for_date(date(2025, 10, 1)) is None
    assert calls == []
