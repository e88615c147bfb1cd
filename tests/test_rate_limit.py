from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from app.core.rate_limit import RateLimiter


def client_request(host):
    return SimpleNamespace(client=SimpleNamespace(host=host))


def test_limit_applies_per_client():
    limiter = RateLimiter(limit=2, window_seconds=60)
    limiter.check(client_request("10.0.0.1"), now=1000)
    limiter.check(client_request("10.0.0.1"), now=1001)
    limiter.check(client_request("10.0.0.2"), now=1002)

    with pytest.raises(HTTPException) as exc:
        limiter.check(client_request("10.0.0.1"), now=1003)
    assert exc.value.status_code == 429


def test_window_slides():
    limiter = RateLimiter(limit=1, window_seconds=60)
    limiter.check(client_request("10.0.0.1"), now=1000)
    limiter.check(client_request("10.0.0.1"), now=1061)
    assert list(limiter.requests["10.0.0.1"]) == [1061]


def test_idle_clients_are_dropped():
    limiter = RateLimiter(limit=5, window_seconds=60)
    for index in range(3):
        limiter.check(client_request(f"10.0.0.{index}"), now=1000)
    assert len(limiter.requests) == 3

    limiter.check(client_request("10.0.1.1"), now=1100)
    assert list(limiter.requests) == ["10.0.1.1"]


def test_request_without_client_uses_shared_key():
    limiter = RateLimiter(limit=1, window_seconds=60)
    limiter.check(SimpleNamespace(client=None), now=1000)
    assert "unknown" in limiter.requests
