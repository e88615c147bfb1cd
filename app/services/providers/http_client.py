from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import httpx

DEFAULT_TIMEOUT = 10


class CircuitOpenError(httpx.HTTPError):
    def __init__(self, name: str) -> None:
        super().__init__(f"circuit open for {name}")


@dataclass
class CircuitBreaker:
    name: str = "default"
    max_failures: int = 3
    reset_seconds: int = 30
    failures: int = 0
    last_failure_ts: float | None = None

    def allow(self) -> bool:
        if self.failures < self.max_failures:
            return True
        if self.last_failure_ts is None:
            return True
        if time.time() - self.last_failure_ts > self.reset_seconds:
            self.failures = 0
            self.last_failure_ts = None
            return True
        return False

    def record_failure(self) -> None:
        self.failures += 1
        self.last_failure_ts = time.time()

    def record_success(self) -> None:
        self.failures = 0
        self.last_failure_ts = None


async def _send(
    method: str,
    url: str,
    breaker: CircuitBreaker | None,
    timeout: float,
    **kwargs: Any,
) -> httpx.Response:
    if breaker is not None and not breaker.allow():
        raise CircuitOpenError(breaker.name)
    async with httpx.AsyncClient(timeout=timeout) as client:
        try:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError:
            if breaker is not None:
                breaker.record_failure()
            raise
    if breaker is not None:
        breaker.record_success()
    return response


async def get_json(
    url: str,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    breaker: CircuitBreaker | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict:
    response = await _send("GET", url, breaker, timeout, headers=headers, params=params)
    return response.json()


async def get_text(
    url: str,
    headers: dict[str, str] | None = None,
    breaker: CircuitBreaker | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    response = await _send("GET", url, breaker, timeout, headers=headers, follow_redirects=True)
    return response.text


async def post_json(
    url: str,
    payload: dict[str, Any],
    headers: dict[str, str] | None = None,
    breaker: CircuitBreaker | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict:
    response = await _send("POST", url, breaker, timeout, headers=headers, json=payload)
    return response.json()


async def post_form(
    url: str,
    data: dict[str, Any],
    headers: dict[str, str] | None = None,
    breaker: CircuitBreaker | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict:
    response = await _send("POST", url, breaker, timeout, headers=headers, data=data)
    return response.json()
