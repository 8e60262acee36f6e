"""Typed error taxonomy for the LicenseChain SDK.

Every failure surfaced by the client is a ``LicenseChainError`` carrying exactly
one :class:`ErrorKind`. Subclasses exist per kind so callers can branch either
with ``except NotFoundError`` or on ``err.kind``. Instances are always built
fresh by the constructor functions below.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Type


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    NETWORK = "network"
    UNKNOWN = "unknown"


RETRYABLE_KINDS = frozenset({ErrorKind.RATE_LIMIT, ErrorKind.SERVER, ErrorKind.NETWORK})


class LicenseChainError(Exception):
    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.body = body

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (status={self.status_code})"
        return self.message

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r}, "
            f"code={self.code!r}, status_code={self.status_code!r})"
        )


class ValidationError(LicenseChainError):
    kind = ErrorKind.VALIDATION


class AuthenticationError(LicenseChainError):
    kind = ErrorKind.AUTHENTICATION


class NotFoundError(LicenseChainError):
    kind = ErrorKind.NOT_FOUND


class RateLimitError(LicenseChainError):
    kind = ErrorKind.RATE_LIMIT


class ServerError(LicenseChainError):
    kind = ErrorKind.SERVER


class NetworkError(LicenseChainError):
    kind = ErrorKind.NETWORK


class UnknownError(LicenseChainError):
    kind = ErrorKind.UNKNOWN


class RequestCancelledError(NetworkError):
    """Raised when a caller-supplied cancel token fires or its deadline passes."""


ERROR_CLASSES: Dict[ErrorKind, Type[LicenseChainError]] = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.AUTHENTICATION: AuthenticationError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.RATE_LIMIT: RateLimitError,
    ErrorKind.SERVER: ServerError,
    ErrorKind.NETWORK: NetworkError,
    ErrorKind.UNKNOWN: UnknownError,
}

_STATUS_KINDS = {
    400: ErrorKind.VALIDATION,
    401: ErrorKind.AUTHENTICATION,
    403: ErrorKind.AUTHENTICATION,
    404: ErrorKind.NOT_FOUND,
    429: ErrorKind.RATE_LIMIT,
    500: ErrorKind.SERVER,
    502: ErrorKind.SERVER,
    503: ErrorKind.SERVER,
    504: ErrorKind.SERVER,
}


def kind_for_status(status_code: int) -> ErrorKind:
    return _STATUS_KINDS.get(status_code, ErrorKind.UNKNOWN)


def error_for_status(
    status_code: int,
    message: str,
    *,
    code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    body: Optional[str] = None,
) -> LicenseChainError:
    """Build a fresh error for a non-2xx status using the fixed status mapping."""
    kind = kind_for_status(status_code)
    if kind is ErrorKind.UNKNOWN:
        return http_error(status_code, message, details=details, body=body)
    return ERROR_CLASSES[kind](message, code=code, status_code=status_code, details=details, body=body)


def validation_error(message: str, *, code: Optional[str] = None) -> ValidationError:
    return ValidationError(message, code=code)


def authentication_error(message: str, *, code: Optional[str] = None) -> AuthenticationError:
    return AuthenticationError(message, code=code)


def network_error(message: str, *, code: Optional[str] = None) -> NetworkError:
    return NetworkError(message, code=code)


def http_error(
    status_code: int,
    message: str,
    *,
    details: Optional[Dict[str, Any]] = None,
    body: Optional[str] = None,
) -> UnknownError:
    return UnknownError(
        f"HTTP error {status_code}: {message}",
        code="http_error",
        status_code=status_code,
        details=details,
        body=body,
    )


def undecodable_error(status_code: int, body: str) -> UnknownError:
    """Error for a non-2xx response whose body is not a standard error envelope."""
    return UnknownError(f"HTTP {status_code}: {body}", status_code=status_code, body=body)


def invalid_response_error(status_code: int, body: str, reason: str) -> UnknownError:
    return UnknownError(
        f"Invalid response from server: {reason}",
        code="invalid_response",
        status_code=status_code,
        body=body,
    )


__all__ = [
    "ErrorKind",
    "LicenseChainError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "NetworkError",
    "UnknownError",
    "RequestCancelledError",
    "kind_for_status",
    "error_for_status",
    "validation_error",
    "authentication_error",
    "network_error",
    "http_error",
    "undecodable_error",
    "invalid_response_error",
]
