"""API tests for the reports and settings routers."""

import pytest
from fastapi.testclient import TestClient

from conftest import InMemoryBackend, source_row, source_sheet
from reportsync.database import get_db, isolated_session
from reportsync.main import app
from reportsync.routers.reports import get_backend
from reportsync.services import exchange_rate_service

CONFIG = {
    "url_pairs": [{"data_url": "data", "report_url": "report"}],
    "summary_report_url": "summary",
}


@pytest.fixture
def backend():
    return InMemoryBackend({
        "data": source_sheet(
            source_row("Cửa hàng B", 100, 10, 0, 1),
            source_row("Cửa hàng A", 50, 5),
            source_row("Cửa hàng B", 1, 1),
        ),
    })


@pytest.fixture
def client(db_url, backend, monkeypatch):
    async def override_get_db():
        # One engine per request: each TestClient call runs in its own event loop
        async with isolated_session(db_url) as session:
            yield session
            await session.commit()

    def fail_get(url, timeout):
        raise exchange_rate_service.requests.ConnectionError("offline")

    monkeypatch.setattr(exchange_rate_service.requests, "get", fail_get)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_backend] = lambda: backend
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["report_running"] is False


class TestReportConfig:

    def test_unconfigured(self, client):
        body = client.get("/api/v1/reports/config").json()
        assert body["success"] is True
        assert body["data"]["configured"] is False
        assert body["data"]["url_pairs"] == []

    def test_save_and_read(self, client):
        body = client.post("/api/v1/reports/config", json=CONFIG).json()
        assert body["success"] is True
        assert body["data"] == {"url_pairs_count": 1, "has_summary_report": True}

        data = client.get("/api/v1/reports/config").json()["data"]
        assert data["configured"] is True
        assert data["url_pairs"] == CONFIG["url_pairs"]
        assert data["summary_report_url"] == "summary"

    def test_requires_pairs(self, client):
        response = client.post("/api/v1/reports/config", json={"url_pairs": []})
        assert response.status_code == 422

    def test_requires_both_urls(self, client):
        response = client.post(
            "/api/v1/reports/config",
            json={"url_pairs": [{"data_url": "data", "report_url": "  "}]},
        )
        assert response.status_code == 422


class TestGenerate:

    def test_not_configured(self, client):
        body = client.post("/api/v1/reports/generate", json={}).json()
        assert body["success"] is False
        assert "not configured" in body["error"]

    def test_generate_with_fallback_rate(self, client, backend):
        client.post("/api/v1/reports/config", json=CONFIG)
        body = client.post("/api/v1/reports/generate", json={"date": "2026-03-01"}).json()

        assert body["success"] is True
        assert body["message"] == "Report generated successfully for 2026-03-01"
        data = body["data"]
        assert data["date"] == "2026-03-01"
        assert data["exchangeRate"] == 26000
        assert data["exchangeRateIsFallback"] is True
        assert data["totalStoresProcessed"] == 2
        assert data["totalRecords"] == 3
        result = data["results"][0]
        assert result["startColumn"] == "F"
        assert result["changedStores"] == 2
        assert result["totalSpend"] == 151
        assert backend.sheets["report"][3][0] == "Cửa hàng B"
        assert "26000" in backend.sheets["summary"][0][6]

    def test_generate_without_body(self, client):
        client.post("/api/v1/reports/config", json=CONFIG)
        body = client.post("/api/v1/reports/generate").json()
        assert body["success"] is True

    def test_invalid_date(self, client):
        response = client.post("/api/v1/reports/generate", json={"date": "03/01/2026"})
        assert response.status_code == 422

    def test_run_history(self, client):
        client.post("/api/v1/reports/config", json=CONFIG)
        client.post("/api/v1/reports/generate", json={"date": "2026-03-01"})
        runs = client.get("/api/v1/reports/runs").json()["data"]
        assert len(runs) == 1
        assert runs[0]["status"] == "success"
        assert runs[0]["report_date"] == "2026-03-01"

        rates = client.get("/api/v1/settings/exchange-rates").json()["data"]
        assert rates[0]["rate"] == 26000
        assert rates[0]["is_fallback"] is True


class TestDataSources:

    def test_connection(self, client):
        client.post("/api/v1/reports/config", json=CONFIG)
        body = client.post("/api/v1/reports/test-data-connection").json()
        assert body["success"] is True
        result = body["data"]["results"][0]
        assert result["total_rows"] == 5
        assert result["columns"][-1] == "R"
        assert len(result["sample_data"]) == 5

    def test_connection_all_failed(self, client, backend):
        client.post("/api/v1/reports/config", json=CONFIG)
        backend.fail_on.add("read_rows")
        body = client.post("/api/v1/reports/test-data-connection").json()
        assert body["success"] is False
        assert body["data"]["failed_pairs"] == 1

    def test_stores(self, client):
        client.post("/api/v1/reports/config", json=CONFIG)
        data = client.get("/api/v1/reports/stores").json()["data"]
        assert data == {"stores": ["Cửa hàng A", "Cửa hàng B"], "total_stores": 2}

    def test_stores_unconfigured(self, client):
        assert client.get("/api/v1/reports/stores").json()["success"] is False


class TestSettings:

    def test_put_and_get(self, client):
        body = client.put("/api/v1/settings", json={"key": "note", "value": "x"}).json()
        assert body["data"] == {"key": "note", "value": "x"}
        client.put("/api/v1/settings", json={"key": "note", "value": "y"})
        assert client.get("/api/v1/settings").json()["data"]["note"] == "y"

    def test_report_keys_are_protected(self, client):
        body = client.put(
            "/api/v1/settings", json={"key": "url_pairs", "value": "[]"},
        ).json()
        assert body["success"] is False
        assert "/reports/config" in body["error"]

    def test_exchange_rates_since(self, client):
        client.post("/api/v1/reports/config", json=CONFIG)
        client.post("/api/v1/reports/generate", json={"date": "2026-03-01"})
        client.post("/api/v1/reports/generate", json={"date": "2026-03-05"})
        rates = client.get(
            "/api/v1/settings/exchange-rates", params={"since": "2026-03-02"},
        ).json()["data"]
        assert [r["rate_date"] for r in rates] == ["2026-03-05"]

    def test_current_rate_falls_back_offline(self, client):
        data = client.get("/api/v1/settings/exchange-rate/current").json()["data"]
        assert data == {"rate": 26000, "is_fallback": True, "display": "26.000 VNĐ/USD"}
