from __future__ import annotations

import httpx
import pytest

from licensechain.errors import network_error, validation_error
from licensechain.retry import RetryLoop, RetryPolicy, RetryState, is_retryable_status
from licensechain.transport import _give_up


@pytest.mark.parametrize("status", [429, 500, 502, 503, 504, 599])
def test_retryable_statuses(status: int) -> None:
    assert is_retryable_status(status)


@pytest.mark.parametrize("status", [200, 204, 301, 400, 401, 403, 404, 409, 422])
def test_non_retryable_statuses(status: int) -> None:
    assert not is_retryable_status(status)


def test_delay_is_exponential_in_attempt_index() -> None:
    policy = RetryPolicy(max_retries=3, base_delay=0.25)
    assert [policy.delay_for(i) for i in range(3)] == [0.25, 0.5, 1.0]


def test_loop_walks_retry_then_success() -> None:
    loop = RetryLoop(RetryPolicy(max_retries=2, base_delay=1.0))
    assert loop.state is RetryState.IDLE
    assert loop.attempts_made == 0

    loop.begin()
    assert loop.fail(network_error("refused"), retryable=True) is RetryState.RETRY_PENDING
    assert loop.delay == 1.0
    loop.resume()
    assert loop.fail(network_error("refused"), retryable=True) is RetryState.RETRY_PENDING
    assert loop.delay == 2.0
    loop.resume()
    assert loop.succeed() is RetryState.SUCCESS
    assert loop.attempts_made == 3
    assert not loop.exhausted


def test_loop_exhausts_and_keeps_last_error() -> None:
    loop = RetryLoop(RetryPolicy(max_retries=1, base_delay=0))
    loop.begin()
    loop.fail(network_error("first"), retryable=True)
    loop.resume()
    last = network_error("second")
    assert loop.fail(last, retryable=True) is RetryState.FAILED
    assert loop.exhausted
    assert loop.last_error is last
    assert loop.attempts_made == 2


def test_non_retryable_failure_stops_immediately() -> None:
    loop = RetryLoop(RetryPolicy(max_retries=5))
    loop.begin()
    assert loop.fail(validation_error("bad"), retryable=False) is RetryState.FAILED
    assert not loop.exhausted
    assert loop.attempts_made == 1


def test_invalid_transition_raises() -> None:
    loop = RetryLoop(RetryPolicy())
    with pytest.raises(RuntimeError):
        loop.resume()
    loop.begin()
    loop.succeed()
    with pytest.raises(RuntimeError):
        loop.fail(network_error("late"), retryable=True)


def test_giving_up_without_an_error_is_a_runtime_error() -> None:
    loop = RetryLoop(RetryPolicy())
    loop.begin()
    loop.succeed()
    with pytest.raises(RuntimeError):
        _give_up(httpx.Request("GET", "https://api.example.com/health"), loop)
