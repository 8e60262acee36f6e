"""Retry policy and the per-call retry state machine.

A call moves ``IDLE -> SENDING`` and then, after each attempt, to ``SUCCESS``,
``FAILED`` or ``RETRY_PENDING``. From ``RETRY_PENDING`` the executor waits for
:attr:`RetryLoop.delay` seconds (the only suspension point besides the send
itself) and calls :meth:`RetryLoop.resume` to go back to ``SENDING``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import ClientConfig
from .errors import LicenseChainError


class RetryState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    SUCCESS = "success"
    RETRY_PENDING = "retry_pending"
    FAILED = "failed"


def is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay: float = 1.0

    @classmethod
    def from_config(cls, config: ClientConfig) -> "RetryPolicy":
        return cls(max_retries=config.max_retries, base_delay=config.retry_delay)

    def delay_for(self, attempt: int) -> float:
        """Backoff before retrying after the zero-based ``attempt``."""
        return self.base_delay * (2 ** attempt)


class RetryLoop:
    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy
        self.state = RetryState.IDLE
        self.attempt = 0
        self.delay: Optional[float] = None
        self.last_error: Optional[LicenseChainError] = None
        self.exhausted = False

    @property
    def attempts_made(self) -> int:
        if self.state is RetryState.IDLE:
            return 0
        return self.attempt + 1

    def _expect(self, *states: RetryState) -> None:
        if self.state not in states:
            raise RuntimeError(f"invalid retry transition from {self.state.value}")

    def begin(self) -> RetryState:
        self._expect(RetryState.IDLE)
        self.state = RetryState.SENDING
        return self.state

    def succeed(self) -> RetryState:
        self._expect(RetryState.SENDING)
        self.state = RetryState.SUCCESS
        return self.state

    def fail(self, error: LicenseChainError, *, retryable: bool) -> RetryState:
        self._expect(RetryState.SENDING)
        self.last_error = error
        if retryable and self.attempt < self.policy.max_retries:
            self.delay = self.policy.delay_for(self.attempt)
            self.state = RetryState.RETRY_PENDING
        else:
            self.exhausted = retryable
            self.state = RetryState.FAILED
        return self.state

    def resume(self) -> RetryState:
        self._expect(RetryState.RETRY_PENDING)
        self.attempt += 1
        self.delay = None
        self.state = RetryState.SENDING
        return self.state


__all__ = ["RetryLoop", "RetryPolicy", "RetryState", "is_retryable_status"]
