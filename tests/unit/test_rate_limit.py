"""Unit tests for the admin rate limiting middleware."""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from config.settings import settings
from src.pm_gateway.middleware import rate_limit
from src.pm_gateway.middleware.rate_limit import RateLimitMiddleware


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware)

    @app.get("/api/v1/admin/ping")
    async def admin_ping() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


@pytest.fixture
def redis(monkeypatch) -> AsyncMock:
    fake = AsyncMock()
    monkeypatch.setattr(rate_limit, "get_redis", AsyncMock(return_value=fake))
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(settings, "ADMIN_RATE_LIMIT_PER_MINUTE", 2)
    return fake


async def _get(path: str, **headers: str):
    transport = ASGITransport(app=_app())
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        return await ac.get(path, headers=headers)


@pytest.mark.asyncio
async def test_under_limit_passes(redis) -> None:
    redis.incr.return_value = 1
    resp = await _get("/api/v1/admin/ping")
    assert resp.status_code == 200
    redis.expire.assert_awaited_once()


@pytest.mark.asyncio
async def test_over_limit_returns_429(redis) -> None:
    redis.incr.return_value = 3
    resp = await _get("/api/v1/admin/ping")
    assert resp.status_code == 429
    body = resp.json()
    assert body["code"] == 9001
    assert body["data"] is None
    assert 1 <= int(resp.headers["Retry-After"]) <= 60


@pytest.mark.asyncio
async def test_key_uses_forwarded_client(redis) -> None:
    redis.incr.return_value = 1
    await _get("/api/v1/admin/ping", **{"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})
    key = redis.incr.await_args.args[0]
    assert key.startswith("ratelimit:admin:203.0.113.9:")


@pytest.mark.asyncio
async def test_non_admin_paths_not_limited(redis) -> None:
    resp = await _get("/health")
    assert resp.status_code == 200
    redis.incr.assert_not_awaited()


@pytest.mark.asyncio
async def test_redis_outage_fails_open(redis) -> None:
    redis.incr.side_effect = RedisConnectionError("connection refused")
    resp = await _get("/api/v1/admin/ping")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_disabled_by_settings(redis, monkeypatch) -> None:
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)
    resp = await _get("/api/v1/admin/ping")
    assert resp.status_code == 200
    redis.incr.assert_not_awaited()
