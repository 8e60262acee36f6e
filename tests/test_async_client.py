from __future__ import annotations

import asyncio
import threading
import time

import httpx
import pytest

from licensechain.cancellation import CancelToken, cancel_scope
from licensechain.client import AsyncLicenseChainClient
from licensechain.config import ClientConfig
from licensechain.errors import (
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequestCancelledError,
    ValidationError,
)

LICENSE_KEY = "ABCDEFGHIJKLMNOPQRSTUVWXYZ012345"


@pytest.mark.asyncio
async def test_async_validate_license(make_async_client, recorder) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer test-key"
        return httpx.Response(200, json={"valid": True})

    client = make_async_client(handler)
    try:
        assert await client.validate_license(LICENSE_KEY) is True
    finally:
        await client.close()
    assert recorder.attempts == 1


@pytest.mark.asyncio
async def test_async_retry_then_success(make_async_client, recorder) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if recorder.attempts <= 2:
            return httpx.Response(503, json={"error": "unavailable"})
        return httpx.Response(200, json={"valid": True})

    client = make_async_client(handler, max_retries=3, retry_delay=0.01)
    try:
        assert await client.validate_license(LICENSE_KEY) is True
    finally:
        await client.close()
    assert recorder.attempts == 3
    assert recorder.sleeps == [0.01, 0.02]


@pytest.mark.asyncio
async def test_async_rate_limit_exhausts(make_async_client, recorder) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": "slow down"})

    client = make_async_client(handler, max_retries=2)
    try:
        with pytest.raises(RateLimitError) as excinfo:
            await client.get_license("lic_1")
    finally:
        await client.close()
    assert excinfo.value.message == "slow down"
    assert recorder.attempts == 3
    assert recorder.sleeps == [0.5, 1.0]


@pytest.mark.asyncio
async def test_async_not_found_and_network(make_async_client, recorder) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/ping":
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(404, json={"error": "not found"})

    client = make_async_client(handler, max_retries=1)
    try:
        with pytest.raises(NotFoundError):
            await client.get_product("prod_1")
        with pytest.raises(NetworkError):
            await client.ping()
        with pytest.raises(ValidationError):
            await client.validate_license("")
    finally:
        await client.close()
    assert recorder.attempts == 3


@pytest.mark.asyncio
async def test_task_cancellation_aborts_backoff() -> None:
    attempts = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["count"] += 1
        return httpx.Response(503, json={"error": "unavailable"})

    cfg = ClientConfig(api_key="test", max_retries=3, retry_delay=10)
    async with AsyncLicenseChainClient(cfg, transport=httpx.MockTransport(handler)) as client:
        task = asyncio.create_task(client.health())
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert attempts["count"] == 1


def _unavailable_client(attempts: dict, retry_delay: float = 10) -> AsyncLicenseChainClient:
    def handler(request: httpx.Request) -> httpx.Response:
        attempts["count"] += 1
        return httpx.Response(503, json={"error": "unavailable"})

    cfg = ClientConfig(api_key="test", max_retries=3, retry_delay=retry_delay)
    return AsyncLicenseChainClient(cfg, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_token_cancel_interrupts_async_backoff() -> None:
    attempts = {"count": 0}
    token = CancelToken()
    asyncio.get_running_loop().call_later(0.05, token.cancel)
    async with _unavailable_client(attempts) as client:
        started = time.monotonic()
        with pytest.raises(RequestCancelledError) as excinfo:
            await client.request("GET", "/health", cancel=token)
        elapsed = time.monotonic() - started

    assert excinfo.value.code == "cancelled"
    assert attempts["count"] == 1
    assert elapsed < 5


@pytest.mark.asyncio
async def test_token_cancel_from_another_thread() -> None:
    attempts = {"count": 0}
    token = CancelToken()
    timer = threading.Timer(0.05, token.cancel)
    timer.start()
    try:
        async with _unavailable_client(attempts) as client:
            started = time.monotonic()
            with cancel_scope(token):
                with pytest.raises(RequestCancelledError):
                    await client.health()
            elapsed = time.monotonic() - started
    finally:
        timer.cancel()

    assert attempts["count"] == 1
    assert elapsed < 5


@pytest.mark.asyncio
async def test_token_cancel_aborts_inflight_send() -> None:
    finished = {"send": False}

    async def slow_handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(10)
        finished["send"] = True
        return httpx.Response(200, json={"status": "ok"})

    token = CancelToken()
    asyncio.get_running_loop().call_later(0.05, token.cancel)
    cfg = ClientConfig(api_key="test")
    async with AsyncLicenseChainClient(cfg, transport=httpx.MockTransport(slow_handler)) as client:
        started = time.monotonic()
        with pytest.raises(RequestCancelledError) as excinfo:
            await client.request("GET", "/health", cancel=token)
        elapsed = time.monotonic() - started

    assert excinfo.value.code == "cancelled"
    assert finished["send"] is False
    assert elapsed < 5


@pytest.mark.asyncio
async def test_async_deadline_bounds_the_whole_retry_loop() -> None:
    attempts = {"count": 0}
    token = CancelToken(timeout=0.05)
    async with _unavailable_client(attempts) as client:
        started = time.monotonic()
        with pytest.raises(RequestCancelledError) as excinfo:
            await client.request("GET", "/health", cancel=token)
        elapsed = time.monotonic() - started

    assert excinfo.value.code == "deadline_exceeded"
    assert attempts["count"] == 1
    assert elapsed < 5
