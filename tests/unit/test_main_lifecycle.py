"""Unit tests for app lifecycle wiring in vault_gateway.main."""

from __future__ import annotations

from contextlib import asynccontextmanager
from types import SimpleNamespace

import httpx
import pytest
from structlog.testing import capture_logs

from vault_gateway import main as main_module
from vault_gateway.config import Settings


@pytest.mark.asyncio
async def test_lifespan_wires_startup_and_shutdown_in_order(monkeypatch: pytest.MonkeyPatch):
    events: list[str] = []

    async def init_db() -> None:
        events.append("init_db")

    async def close_db() -> None:
        events.append("close_db")

    async def init_gc_scheduler() -> None:
        events.append("init_gc_scheduler")

    async def shutdown_gc_scheduler() -> None:
        events.append("shutdown_gc_scheduler")

    @asynccontextmanager
    async def fake_get_async_session():
        yield object()

    async def fake_seed(db, settings):  # noqa: ANN001, ANN202
        events.append("seed_configured_key")
        return None

    from vault_gateway.services.api_key import ApiKeyService

    monkeypatch.setattr(main_module, "init_db", init_db)
    monkeypatch.setattr(main_module, "close_db", close_db)
    monkeypatch.setattr(main_module, "init_gc_scheduler", init_gc_scheduler)
    monkeypatch.setattr(main_module, "shutdown_gc_scheduler", shutdown_gc_scheduler)
    monkeypatch.setattr(main_module, "get_async_session", fake_get_async_session)
    monkeypatch.setattr(ApiKeyService, "seed_configured_key", staticmethod(fake_seed))

    app = SimpleNamespace(state=SimpleNamespace())
    async with main_module.lifespan(app):
        events.append("inside")

    assert events == [
        "init_db",
        "seed_configured_key",
        "init_gc_scheduler",
        "inside",
        "shutdown_gc_scheduler",
        "close_db",
    ]


@pytest.mark.asyncio
async def test_request_id_middleware_sets_response_header():
    app = main_module.create_app()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        explicit = await client.get("/health", headers={"X-Request-Id": "req-fixed"})
        assert explicit.status_code == 200
        assert explicit.headers["X-Request-Id"] == "req-fixed"
        assert explicit.json() == {"status": "ok"}

        generated = await client.get("/health")
        assert generated.status_code == 200
        assert generated.headers.get("X-Request-Id")


@pytest.mark.asyncio
async def test_cors_preflight_allows_api_key_header():
    app = main_module.create_app()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.options(
            "/public-api/v1/entities",
            headers={
                "Origin": "https://example.com",
                "Access-Control-Request-Method": "GET",
                "Access-Control-Request-Headers": "x-api-key",
            },
        )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "x-api-key" in response.headers["access-control-allow-headers"].lower()


@pytest.mark.asyncio
async def test_unhandled_error_returns_envelope():
    app = main_module.create_app()

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/boom")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "internal_error"


@pytest.mark.asyncio
@pytest.mark.parametrize(("jwt_secret", "warned"), [(None, True), ("a-real-secret", False)])
async def test_startup_warns_on_default_identity_secret(
    monkeypatch: pytest.MonkeyPatch, jwt_secret, warned
):
    async def noop() -> None:
        return None

    @asynccontextmanager
    async def fake_get_async_session():
        yield object()

    async def fake_seed(db, settings):  # noqa: ANN001, ANN202
        return None

    from vault_gateway.services.api_key import ApiKeyService

    identity = {} if jwt_secret is None else {"jwt_secret": jwt_secret}
    settings = Settings(identity=identity)

    monkeypatch.setattr(main_module, "get_settings", lambda: settings)
    monkeypatch.setattr(main_module, "init_db", noop)
    monkeypatch.setattr(main_module, "close_db", noop)
    monkeypatch.setattr(main_module, "init_gc_scheduler", noop)
    monkeypatch.setattr(main_module, "shutdown_gc_scheduler", noop)
    monkeypatch.setattr(main_module, "get_async_session", fake_get_async_session)
    monkeypatch.setattr(ApiKeyService, "seed_configured_key", staticmethod(fake_seed))

    with capture_logs() as logs:
        async with main_module.lifespan(SimpleNamespace(state=SimpleNamespace())):
            pass

    events = [entry["event"] for entry in logs]
    assert ("identity.default_secret" in events) is warned
