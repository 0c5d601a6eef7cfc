from __future__ import annotations

from fastapi.middleware.cors import CORSMiddleware
from fastapi.testclient import TestClient
from redis.exceptions import RedisError

from namethesub import main as app_main


def _get_cors_options(app_main_module) -> dict:
    app = app_main_module.create_app()
    for middleware in app.user_middleware:
        if middleware.cls is CORSMiddleware:
            return middleware.kwargs
    raise AssertionError("CORS middleware not configured")


def test_frontend_base_url_is_added_to_cors_origins(monkeypatch):
    class DummySettings:
        def __init__(self) -> None:
            self.cors_origins = ["https://api.example"]
            self.frontend_base_url = "https://frontend.example/"
            self.log_level = "INFO"

    monkeypatch.setattr(app_main, "settings", DummySettings())

    cors_options = _get_cors_options(app_main)

    assert cors_options["allow_origins"] == ["https://api.example", "https://frontend.example"]


def test_live_probe() -> None:
    client = TestClient(app_main.app)
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_ready_probe_reports_store(isolated_store) -> None:
    client = TestClient(app_main.app)
    response = client.get("/health/ready")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "store": "InMemoryStore"}


def test_ready_probe_fails_when_store_is_unreachable(isolated_store, monkeypatch) -> None:
    async def broken_ping() -> bool:
        raise RedisError("connection refused")

    monkeypatch.setattr(isolated_store, "ping", broken_ping)
    client = TestClient(app_main.app)

    response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.json()["ok"] is False


def test_startup_warms_puzzle_cache(monkeypatch) -> None:
    warmed = []

    async def fake_warm(day) -> None:
        warmed.append(day)

    monkeypatch.setattr(app_main.settings, "warm_cache_on_startup", True)
    monkeypatch.setattr(app_main, "warm_daily_puzzles", fake_warm)

    with TestClient(app_main.app):
        pass

    assert len(warmed) == 1
