"""HTTP route tests with the engine and repository mocked out."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.routes import router
from src.api.schemas import ScanResponse, ScrapeRecord, ScrapeStats
from src.config import Settings, get_settings
from src.scanner.browser import Target
from src.scanner.errors import RepositoryError

API_KEY = "test-secret-key"
HEADERS = {"X-API-Key": API_KEY}

TARGETS = [
    Target(url="https://a.example.com/", name="Site A"),
    Target(url="https://b.example.com/", name="Site B"),
]


def _record(**overrides) -> ScrapeRecord:
    defaults = dict(
        id="abc-123",
        url="https://a.example.com/",
        name="Site A",
        domain="a.example.com",
        scraped_at="2026-01-01T00:00:00+00:00",
        status="success",
    )
    defaults.update(overrides)
    return ScrapeRecord(**defaults)


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_settings] = lambda: Settings(api_key=API_KEY)  # type: ignore[call-arg]

    engine = MagicMock()
    engine.run = AsyncMock(
        return_value=ScanResponse(success=True, timestamp="2026-01-01T00:00:00+00:00", sites_processed=2)
    )
    app.state.engine = engine
    app.state.repository = AsyncMock()
    app.state.targets = TARGETS
    app.state.scan_lock = asyncio.Lock()
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


# --- auth ---


def test_routes_require_api_key(client: TestClient) -> None:
    assert client.post("/scans", json={}).status_code == 401
    assert client.get("/stats").status_code == 401


# --- scans ---


def test_scan_waits_for_result(client: TestClient, app: FastAPI) -> None:
    resp = client.post("/scans", json={}, headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json()["sites_processed"] == 2
    assert app.state.engine.run.await_args.args[0] == TARGETS


def test_scan_selected_names(client: TestClient, app: FastAPI) -> None:
    resp = client.post("/scans", json={"names": ["Site B"]}, headers=HEADERS)
    assert resp.status_code == 200
    assert app.state.engine.run.await_args.args[0] == [TARGETS[1]]


def test_scan_unknown_names_404(client: TestClient) -> None:
    resp = client.post("/scans", json={"names": ["Nope"]}, headers=HEADERS)
    assert resp.status_code == 404


def test_scan_refused_while_running(client: TestClient, app: FastAPI) -> None:
    app.state.scan_lock = MagicMock()
    app.state.scan_lock.locked.return_value = True
    resp = client.post("/scans", json={}, headers=HEADERS)
    assert resp.status_code == 409


# --- scrape history ---


def test_scrapes_by_domain(client: TestClient, app: FastAPI) -> None:
    app.state.repository.get_latest_by_domain.return_value = [_record()]
    resp = client.get("/scrapes", params={"domain": "a.example.com", "limit": 5}, headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json()[0]["id"] == "abc-123"
    app.state.repository.get_latest_by_domain.assert_awaited_once_with("a.example.com", limit=5)


def test_scrapes_by_url_and_name(client: TestClient, app: FastAPI) -> None:
    app.state.repository.get_history_by_url.return_value = []
    app.state.repository.get_history_by_name.return_value = [_record(), _record(id="def-456")]

    assert client.get("/scrapes", params={"url": "https://a.example.com/"}, headers=HEADERS).json() == []
    resp = client.get("/scrapes", params={"name": "Site A"}, headers=HEADERS)
    assert len(resp.json()) == 2
    app.state.repository.get_history_by_name.assert_awaited_once_with("Site A", limit=20)


@pytest.mark.parametrize("params", [{}, {"domain": "a.com", "name": "A"}])
def test_scrapes_requires_exactly_one_filter(client: TestClient, params) -> None:
    assert client.get("/scrapes", params=params, headers=HEADERS).status_code == 422


def test_scrapes_limit_bounds(client: TestClient) -> None:
    resp = client.get("/scrapes", params={"domain": "a.com", "limit": 0}, headers=HEADERS)
    assert resp.status_code == 422


def test_recent_scrapes(client: TestClient, app: FastAPI) -> None:
    app.state.repository.get_recent_successful_scrapes.return_value = [_record()]
    resp = client.get("/scrapes/recent", params={"days": 3}, headers=HEADERS)
    assert resp.status_code == 200
    app.state.repository.get_recent_successful_scrapes.assert_awaited_once_with(3)


def test_get_scrape(client: TestClient, app: FastAPI) -> None:
    app.state.repository.get.return_value = _record()
    assert client.get("/scrapes/abc-123", headers=HEADERS).json()["name"] == "Site A"


def test_get_scrape_not_found(client: TestClient, app: FastAPI) -> None:
    app.state.repository.get.return_value = None
    assert client.get("/scrapes/missing", headers=HEADERS).status_code == 404


def test_stats(client: TestClient, app: FastAPI) -> None:
    app.state.repository.get_stats.return_value = ScrapeStats(total_scrapes=4, successful_scrapes=3)
    resp = client.get("/stats", headers=HEADERS)
    assert resp.json()["total_scrapes"] == 4
    app.state.repository.get_stats.assert_awaited_once_with(30)


def test_store_unavailable_returns_503(client: TestClient, app: FastAPI) -> None:
    app.state.repository.get_stats.side_effect = RepositoryError("down")
    assert client.get("/stats", headers=HEADERS).status_code == 503
