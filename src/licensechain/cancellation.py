"""Caller-controlled cancellation for in-flight requests."""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Callable, Iterator, List, Optional

from .errors import RequestCancelledError


class CancelToken:
    """Cancellation signal with an optional overall deadline.

    A token spans every attempt of a call (or of several calls when bound with
    :func:`cancel_scope`). ``cancel()`` may be called from any thread; a
    pending backoff wait returns immediately when it fires, and callbacks
    registered with :meth:`add_callback` run on the cancelling thread.
    """

    def __init__(self, *, timeout: Optional[float] = None, deadline: Optional[float] = None) -> None:
        if deadline is None and timeout is not None:
            deadline = time.monotonic() + timeout
        self._deadline = deadline
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    def cancel(self) -> None:
        with self._lock:
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run ``callback`` once on cancel; return a function that unregisters it."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return lambda: self._remove_callback(callback)
        callback()
        return lambda: None

    def _remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.expired

    def remaining(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def wait(self, seconds: float) -> bool:
        """Block for up to ``seconds``; return True if cancelled before they elapsed."""
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            self._event.wait(remaining)
            return True
        return self._event.wait(seconds)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelledError("Request cancelled", code="cancelled")
        if self.expired:
            raise RequestCancelledError("Request deadline exceeded", code="deadline_exceeded")


_current_token: ContextVar[Optional[CancelToken]] = ContextVar("licensechain_cancel_token", default=None)


def current_token() -> Optional[CancelToken]:
    return _current_token.get()


@contextmanager
def cancel_scope(token: CancelToken) -> Iterator[CancelToken]:
    """Bind ``token`` to every client call made in this thread or task."""
    reset = _current_token.set(token)
    try:
        yield token
    finally:
        _current_token.reset(reset)


__all__ = ["CancelToken", "cancel_scope", "current_token"]
