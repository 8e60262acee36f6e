from __future__ import annotations

from typing import Callable, List

import httpx
import pytest

from licensechain.client import AsyncLicenseChainClient, LicenseChainClient
from licensechain.config import ClientConfig

Handler = Callable[[httpx.Request], httpx.Response]


class Recorder:
    """Collects requests seen by a mock transport and backoff delays requested by the client."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.sleeps: List[float] = []

    @property
    def attempts(self) -> int:
        return len(self.requests)

    def wrap(self, handler: Handler) -> Handler:
        def recording(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        return recording

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    async def async_sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture()
def make_client(recorder: Recorder):
    clients: List[LicenseChainClient] = []

    def factory(handler: Handler, **overrides) -> LicenseChainClient:
        settings = {"api_key": "test-key", "base_url": "https://api.example.com", "retry_delay": 0.5}
        settings.update(overrides)
        client = LicenseChainClient(
            ClientConfig(**settings),
            transport=httpx.MockTransport(recorder.wrap(handler)),
            sleep=recorder.sleep,
        )
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


@pytest.fixture()
def make_async_client(recorder: Recorder):
    def factory(handler: Handler, **overrides) -> AsyncLicenseChainClient:
        settings = {"api_key": "test-key", "base_url": "https://api.example.com", "retry_delay": 0.5}
        settings.update(overrides)
        return AsyncLicenseChainClient(
            ClientConfig(**settings),
            transport=httpx.MockTransport(recorder.wrap(handler)),
            sleep=recorder.async_sleep,
        )

    return factory
