from __future__ import annotations

import asyncio
from typing import List

import httpx
import pytest

import refit_cli
from refit_cli.http import describe_http_error, request_headers, request_with_retries


def _run(handler, method: str = "GET", **kwargs):
    sleeps: List[float] = []

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await request_with_retries(
                client, method, "https://example.com/openapi.json", sleep=fake_sleep, **kwargs
            )

    return asyncio.run(go()), sleeps


def test_request_headers_include_user_agent():
    headers = request_headers(accept="application/yaml", content_type="application/json")
    assert headers["Accept"] == "application/yaml"
    assert headers["Content-Type"] == "application/json"
    assert headers["User-Agent"] == f"refit_cli/{refit_cli.__version__}"


def test_retries_transient_status_then_succeeds():
    statuses = iter([503, 502, 200])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(next(statuses))

    response, sleeps = _run(handler)
    assert response.status_code == 200
    assert sleeps == [0.5, 1.0]


def test_honours_retry_after():
    statuses = iter([429, 200])

    def handler(request: httpx.Request) -> httpx.Response:
        status = next(statuses)
        return httpx.Response(status, headers={"Retry-After": "2"} if status == 429 else {})

    response, sleeps = _run(handler)
    assert response.status_code == 200
    assert sleeps == [2.0]


def test_gives_up_after_max_attempts():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    response, _ = _run(handler, max_attempts=2)
    assert response.status_code == 500
    assert len(calls) == 2


def test_post_is_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503)

    response, sleeps = _run(handler, method="POST", json={"a": 1})
    assert response.status_code == 503
    assert len(calls) == 1
    assert sleeps == []


def test_network_errors_are_retried_then_raised():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(httpx.ConnectError):
        _run(handler)
    assert len(calls) == 3


def test_describe_status_error_extracts_detail():
    request = httpx.Request("GET", "https://example.com/openapi.json")
    response = httpx.Response(404, json={"detail": "missing"}, request=request)
    exc = httpx.HTTPStatusError("not found", request=request, response=response)
    assert describe_http_error(exc) == "404 Not Found: missing"


def test_describe_connect_error_includes_target():
    request = httpx.Request("GET", "https://example.com/openapi.json")
    exc = httpx.ConnectError("connection refused", request=request)
    summary = describe_http_error(exc)
    assert summary.startswith("failed to connect")
    assert "GET https://example.com/openapi.json" in summary
