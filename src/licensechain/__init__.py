"""LicenseChain Python SDK."""

from .cancellation import CancelToken, cancel_scope
from .client import AsyncLicenseChainClient, LicenseChainClient
from .config import ClientConfig
from .errors import (
    AuthenticationError,
    ErrorKind,
    LicenseChainError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequestCancelledError,
    ServerError,
    UnknownError,
    ValidationError,
)
from .request import OutgoingRequest
from .retry import RetryPolicy
from .webhooks import WebhookEventType, WebhookHandler, create_signature, verify_signature

__version__ = "1.0.0"

__all__ = [
    "AsyncLicenseChainClient",
    "AuthenticationError",
    "CancelToken",
    "ClientConfig",
    "ErrorKind",
    "LicenseChainClient",
    "LicenseChainError",
    "NetworkError",
    "NotFoundError",
    "OutgoingRequest",
    "RateLimitError",
    "RequestCancelledError",
    "RetryPolicy",
    "ServerError",
    "UnknownError",
    "ValidationError",
    "WebhookEventType",
    "WebhookHandler",
    "cancel_scope",
    "create_signature",
    "verify_signature",
]
