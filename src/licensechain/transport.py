"""Request execution with exponential-backoff retry."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from .cancellation import CancelToken, current_token
from .config import ClientConfig
from .errors import LicenseChainError, RequestCancelledError, network_error
from .request import OutgoingRequest, RequestBuilder
from .responses import decode_response, error_from_response
from .retry import RetryLoop, RetryPolicy, RetryState, is_retryable_status

logger = logging.getLogger("licensechain.transport")

T = TypeVar("T")


def _attempt_timeout(config: ClientConfig, token: Optional[CancelToken]) -> dict:
    timeout = config.timeout
    remaining = token.remaining() if token is not None else None
    if remaining is not None:
        timeout = min(timeout, remaining)
    return httpx.Timeout(timeout).as_dict()


def _classify(loop: RetryLoop, response: httpx.Response) -> RetryState:
    if response.is_success:
        return loop.succeed()
    error = error_from_response(response)
    return loop.fail(error, retryable=is_retryable_status(response.status_code))


def _transport_failure(loop: RetryLoop, exc: httpx.RequestError) -> RetryState:
    error = network_error(f"Network error: {exc}")
    error.__cause__ = exc
    # connect, read and timeout failures are transient; decoding and redirect errors are not
    return loop.fail(error, retryable=isinstance(exc, httpx.TransportError))


def _log_retry(request: httpx.Request, loop: RetryLoop) -> None:
    logger.info(
        "Retrying %s %s attempt=%s delay=%.3fs error=%s",
        request.method,
        request.url.path,
        loop.attempt + 1,
        loop.delay,
        loop.last_error,
    )


def _give_up(request: httpx.Request, loop: RetryLoop) -> LicenseChainError:
    error = loop.last_error
    if error is None:
        raise RuntimeError(f"retry loop ended in {loop.state.value} without an error")
    if loop.exhausted:
        logger.warning(
            "Giving up on %s %s after %s attempts: %s",
            request.method,
            request.url.path,
            loop.attempts_made,
            error,
        )
    return error


class Transport:
    """Blocking executor; safe to share between threads."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._builder = RequestBuilder(config)
        self._policy = RetryPolicy.from_config(config)
        self._client = httpx.Client(timeout=config.timeout, transport=transport)
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def send(self, request: OutgoingRequest, *, cancel: Optional[CancelToken] = None) -> httpx.Response:
        token = cancel or current_token()
        http_request = self._builder.build(request)
        loop = RetryLoop(self._policy)
        loop.begin()
        while True:
            if token is not None:
                token.raise_if_cancelled()
            http_request.extensions["timeout"] = _attempt_timeout(self._config, token)
            try:
                response = self._client.send(http_request)
            except httpx.RequestError as exc:
                state = _transport_failure(loop, exc)
            else:
                state = _classify(loop, response)
            if token is not None:
                token.raise_if_cancelled()

            if state is RetryState.SUCCESS:
                return response
            if state is RetryState.FAILED:
                raise _give_up(http_request, loop)

            _log_retry(http_request, loop)
            if token is not None:
                if token.wait(loop.delay):
                    token.raise_if_cancelled()
                    raise RequestCancelledError("Request deadline exceeded", code="deadline_exceeded")
            else:
                self._sleep(loop.delay)
            loop.resume()

    def execute(
        self,
        request: OutgoingRequest,
        result_type: Optional[Any] = None,
        *,
        cancel: Optional[CancelToken] = None,
    ) -> Any:
        return decode_response(self.send(request, cancel=cancel), result_type)

    def close(self) -> None:
        self._client.close()


async def _guarded(awaitable: Awaitable[T], token: Optional[CancelToken]) -> T:
    """Await ``awaitable`` unless ``token`` is cancelled or its deadline passes first."""
    if token is None:
        return await awaitable
    loop = asyncio.get_running_loop()
    cancelled = asyncio.Event()
    unregister = token.add_callback(lambda: loop.call_soon_threadsafe(cancelled.set))
    work = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancelled.wait())
    try:
        done, _ = await asyncio.wait(
            {work, waiter},
            timeout=token.remaining(),
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        unregister()
        waiter.cancel()
        if not work.done():
            work.cancel()
    if work in done:
        return work.result()
    await asyncio.gather(work, return_exceptions=True)
    token.raise_if_cancelled()
    raise RequestCancelledError("Request deadline exceeded", code="deadline_exceeded")


class AsyncTransport:
    """asyncio executor.

    Task cancellation, ``CancelToken.cancel()`` and the token deadline all abort
    both the in-flight send and the backoff sleep.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config
        self._builder = RequestBuilder(config)
        self._policy = RetryPolicy.from_config(config)
        self._client = httpx.AsyncClient(timeout=config.timeout, transport=transport)
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def send(self, request: OutgoingRequest, *, cancel: Optional[CancelToken] = None) -> httpx.Response:
        token = cancel or current_token()
        http_request = self._builder.build(request)
        loop = RetryLoop(self._policy)
        loop.begin()
        while True:
            if token is not None:
                token.raise_if_cancelled()
            http_request.extensions["timeout"] = _attempt_timeout(self._config, token)
            try:
                response = await _guarded(self._client.send(http_request), token)
            except httpx.RequestError as exc:
                state = _transport_failure(loop, exc)
            else:
                state = _classify(loop, response)
            if token is not None:
                token.raise_if_cancelled()

            if state is RetryState.SUCCESS:
                return response
            if state is RetryState.FAILED:
                raise _give_up(http_request, loop)

            _log_retry(http_request, loop)
            await _guarded(self._sleep(loop.delay), token)
            loop.resume()

    async def execute(
        self,
        request: OutgoingRequest,
        result_type: Optional[Any] = None,
        *,
        cancel: Optional[CancelToken] = None,
    ) -> Any:
        response = await self.send(request, cancel=cancel)
        return decode_response(response, result_type)

    async def close(self) -> None:
        await self._client.aclose()


__all__ = ["AsyncTransport", "Transport"]
