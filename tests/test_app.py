import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from fastapi_limiter.depends import RateLimiter
from starlette.requests import Request
from starlette.responses import Response

from rentbnb import auth
from rentbnb.config import settings
from rentbnb.main import app
from rentbnb.rate_limit import get_key_by_user_id_or_ip, rate_limit


def make_request(authorization: str = None) -> Request:
    headers = [(b"authorization", authorization.encode())] if authorization else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers, "client": ("10.0.0.7", 5555)})


def test_root(client: TestClient):
    response = client.get("/")
    assert response.json()["success"] is True


def test_unknown_route_uses_envelope(client: TestClient):
    response = client.get("/nowhere")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Not Found"}


def test_lifespan_initializes_limiter_when_enabled(monkeypatch, mocker):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    fake_redis = MagicMock()
    fake_redis.aclose = AsyncMock()
    from_url = mocker.patch("rentbnb.main.redis.from_url", return_value=fake_redis)
    init = mocker.patch("rentbnb.main.FastAPILimiter.init", new_callable=AsyncMock)

    with TestClient(app):
        pass

    from_url.assert_called_once_with(settings.REDIS_URL, encoding="utf-8")
    init.assert_awaited_once_with(fake_redis)
    fake_redis.aclose.assert_awaited_once()


def test_lifespan_skips_limiter_when_disabled(mocker):
    init = mocker.patch("rentbnb.main.FastAPILimiter.init", new_callable=AsyncMock)

    with TestClient(app):
        pass

    init.assert_not_awaited()


def test_rate_limit_key_prefers_user_id():
    token = auth.create_access_token(42)

    assert asyncio.run(get_key_by_user_id_or_ip(make_request(f"Bearer {token}"))) == "user:42"
    assert asyncio.run(get_key_by_user_id_or_ip(make_request("Bearer garbage"))) == "10.0.0.7"
    assert asyncio.run(get_key_by_user_id_or_ip(make_request("Basic"))) == "10.0.0.7"
    assert asyncio.run(get_key_by_user_id_or_ip(make_request())) == "10.0.0.7"


@pytest.mark.parametrize("enabled, expected_calls", [(True, 1), (False, 0)])
def test_rate_limit_dependency_respects_setting(monkeypatch, mocker, enabled, expected_calls):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", enabled)
    limiter_call = mocker.patch.object(RateLimiter, "__call__", new_callable=AsyncMock)

    dependency = rate_limit(times=1, minutes=1)
    asyncio.run(dependency(make_request(), Response()))

    assert limiter_call.await_count == expected_calls
