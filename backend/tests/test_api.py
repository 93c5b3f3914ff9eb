import asyncio
from contextlib import asynccontextmanager
from datetime import date
from pathlib import Path

import httpx
from httpx import ASGITransport, AsyncClient

from dof_fx.config import AppSettings
from dof_fx.db import Database
from dof_fx.main import create_app
from dof_fx.services.facade import build_rate_service
from dof_fx.storage import SqlRateStore

DOF_URL = "https://dof.test/indicadores_detalle.php"
BANXICO_URL = "https://banxico.test/series"
TODAY = date(2025, 10, 3)

DOF_PAGES = {
    10: (
        "<table><tr><td>01/10/2025</td><td>18.1234</td></tr>"
        "<tr><td>02/10/2025</td><td>18.2345</td></tr>"
        "<tr><td>03/10/2025</td><td>18.3456</td></tr></table>"
    ),
    11: "<table><tr><td>28/11/2025</td><td>18.5000</td></tr></table>",
}
FIX_VALUES = {"2025-10-01": "18.1500", "2025-10-02": "18.9000", "2025-10-03": "18.3400"}


def _upstream(request: httpx.Request) -> httpx.Response:
    if request.url.host == "dof.test":
        page = DOF_PAGES.get(int(request.url.params["month"]))
        if page is None:
            return httpx.Response(500, text="unavailable")
        return httpx.Response(200, content=page.encode("latin-1"))
    day = request.url.path.rsplit("/", 1)[-1]
    dato = FIX_VALUES.get(day, "N/E")
    return httpx.Response(200, json={"bmx": {"series": [{"idSerie": "SF43718", "datos": [{"dato": dato}]}]}})


def _settings(tmp_path: Path) -> AppSettings:
    return AppSettings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        dof_source_urls=[DOF_URL],
        banxico_token="test-token",
        banxico_base_url=BANXICO_URL,
        resolution_deadline_seconds=5,
    )


def _client(tmp_path: Path):
    settings = _settings(tmp_path)

    @asynccontextmanager
    async def _manager():
        database = Database(url=settings.database_url)
        upstream = httpx.AsyncClient(transport=httpx.MockTransport(_upstream))
        service = build_rate_service(settings, SqlRateStore(database), http_client=upstream, today=lambda: TODAY)
        app = create_app(settings, database, service)
        async with app.router.lifespan_context(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client
        await upstream.aclose()

    return _manager


def test_health(tmp_path: Path):
    async def _scenario():
        async with _client(tmp_path)() as api_client:
            response = await api_client.get("/health")
            assert response.status_code == 200
            payload = response.json()
            assert payload["status"] == "ok"
            assert payload["service"] == "tc-dof-microservice"
            assert payload["timezone"] == "America/Mexico_City"

    asyncio.run(_scenario())


def test_rate_lookup_reconciles_with_fix(tmp_path: Path):
    async def _scenario():
        async with _client(tmp_path)() as api_client:
            response = await api_client.get("/tipo-cambio", params={"fecha": "2025-10-01"})
            assert response.status_code == 200
            payload = response.json()
            assert payload["date"] == "2025-10-01"
            assert payload["rate"] == 18.1234
            assert payload["fix_rate"] == 18.15
            assert payload["validation_note"] == "OK"
            assert payload["source"] == "DOF"
            assert payload["published_at"] == "12:00"
            assert payload["note"] is None

            divergent = await api_client.get("/tipo-cambio", params={"fecha": "2025-10-02"})
            assert divergent.json()["validation_note"] == "DIF_DOF_BANX"
            assert divergent.json()["divergence_pct"] > 1

    asyncio.run(_scenario())


def test_rate_lookup_falls_back_from_weekend(tmp_path: Path):
    async def _scenario():
        async with _client(tmp_path)() as api_client:
            response = await api_client.get("/tipo-cambio", params={"fecha": "2025-10-04"})
            assert response.status_code == 200
            payload = response.json()
            assert payload["requested_date"] == "2025-10-04"
            assert payload["date"] == "2025-10-03"
            assert payload["rate"] == 18.3456
            assert payload["fix_rate"] == 18.34
            assert payload["note"] == "SIN_PUBLICACION_FECHA; USADO_ANTERIOR=2025-10-03"
            assert payload["attempts"] == 2

    asyncio.run(_scenario())


def test_rate_lookup_errors(tmp_path: Path):
    async def _scenario():
        async with _client(tmp_path)() as api_client:
            missing = await api_client.get("/tipo-cambio", params={"fecha": "2025-11-12"})
            assert missing.status_code == 404
            assert missing.json()["attempts"] == 3
            assert missing.json()["requested_date"] == "2025-11-12"

            down = await api_client.get("/tipo-cambio", params={"fecha": "2025-12-10"})
            assert down.status_code == 503

            malformed = await api_client.get("/tipo-cambio", params={"fecha": "10/12/2025"})
            assert malformed.status_code == 422

    asyncio.run(_scenario())


def test_register_and_average(tmp_path: Path):
    async def _scenario():
        async with _client(tmp_path)() as api_client:
            first = await api_client.post("/registrar", json={"date": "2025-10-01", "rate": "18.1234"})
            assert first.status_code == 201
            assert first.json()["rate"] == 18.1234

            duplicate = await api_client.post("/registrar", json={"date": "2025-10-01", "rate": "18.5"})
            assert duplicate.status_code == 409
            assert duplicate.json()["detail"]["date"] == "2025-10-01"

            implicit = await api_client.post("/registrar", json={"rate": "18.2345"})
            assert implicit.status_code == 201
            assert implicit.json()["date"] == TODAY.isoformat()

            invalid = await api_client.post("/registrar", json={"date": "2025-10-02", "rate": "0"})
            assert invalid.status_code == 422

            averages = await api_client.get("/promedios", params={"to": "2025-10-03"})
            assert averages.status_code == 200
            payload = averages.json()
            assert payload["weekly"] == {"iso_year": 2025, "iso_week": 40, "value": 18.179, "record_count": 2}
            assert payload["monthly"]["record_count"] == 2

            empty = await api_client.get("/promedios", params={"to": "2025-06-30"})
            assert empty.json() == {"weekly": None, "monthly": None}

            inverted = await api_client.get("/promedios", params={"from": "2025-10-05", "to": "2025-10-01"})
            assert inverted.status_code == 422

    asyncio.run(_scenario())


def test_create_and_list_operations(tmp_path: Path):
    async def _scenario():
        async with _client(tmp_path)() as api_client:
            manual = await api_client.post(
                "/operaciones",
                json={
                    "direction": "RECEIVE_USD",
                    "usd_amount": "800",
                    "base": {"kind": "MANUAL", "value": "18.20"},
                    "comparison": {"kind": "MANUAL", "value": "18.33"},
                    "operation_date": "2025-10-03",
                    "concept": "Client payment",
                },
            )
            assert manual.status_code == 201
            created = manual.json()
            assert created["status"] == "PENDING"
            assert created["profit_loss_local"] == 104.0
            assert created["profit_loss_percent"] == 0.714

            published = await api_client.post(
                "/operaciones",
                json={
                    "direction": "PAY_USD",
                    "usd_amount": "1000",
                    "base": {"kind": "PUBLISHED", "date": "2025-10-01"},
                    "comparison": {"kind": "MANUAL", "value": "18.00"},
                    "operation_date": "2025-10-01",
                    "counterparty": "ACME",
                },
            )
            assert published.status_code == 201
            body = published.json()
            assert body["base_rate"]["effective_date"] == "2025-10-01"
            assert body["base_amount_local"] == 18123.4
            assert body["profit_loss_local"] == 123.4

            invalid = await api_client.post(
                "/operaciones",
                json={
                    "direction": "PAY_USD",
                    "usd_amount": "10",
                    "base": {"kind": "MANUAL", "value": "0"},
                    "comparison": {"kind": "PUBLISHED", "date": "today"},
                    "operation_date": "2025-10-03",
                },
            )
            assert invalid.status_code == 422

            listing = await api_client.get("/operaciones")
            assert listing.status_code == 200
            assert listing.json()["total"] == 2
            assert listing.json()["items"][0]["operation_date"] == "2025-10-03"

            paid = await api_client.get("/operaciones", params={"direction": "PAY_USD", "q": "acme"})
            assert paid.json()["total"] == 1
            assert paid.json()["items"][0]["counterparty"] == "ACME"

            too_many = await api_client.get("/operaciones", params={"limit": 500})
            assert too_many.status_code == 422

    asyncio.run(_scenario())
