"""Configuration objects for the LicenseChain Python SDK."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, TypeVar
from urllib.parse import urlsplit

from .errors import validation_error

DEFAULT_BASE_URL = "https://api.licensechain.app"
DEFAULT_USER_AGENT = "licensechain-python/1.0.0"

N = TypeVar("N", int, float)


def _env_number(name: str, default: N, parse: Callable[[str], N]) -> N:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return parse(raw.strip())
    except ValueError as exc:
        raise validation_error(f"{name} must be a number, got {raw!r}", code="invalid_config") from exc


@dataclass(frozen=True)
class ClientConfig:
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0
    user_agent: str = DEFAULT_USER_AGENT
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise validation_error("API key is required", code="invalid_api_key")
        base_url = (self.base_url or DEFAULT_BASE_URL).rstrip("/")
        parts = urlsplit(base_url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise validation_error(f"Invalid base URL: {self.base_url!r}", code="invalid_url")
        if self.timeout <= 0:
            raise validation_error("timeout must be positive")
        if self.max_retries < 0:
            raise validation_error("max_retries cannot be negative")
        if self.retry_delay < 0:
            raise validation_error("retry_delay cannot be negative")
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "base_url", base_url)
        object.__setattr__(self, "headers", dict(self.headers))

    @classmethod
    def from_env(cls, api_key: Optional[str] = None) -> "ClientConfig":
        key = api_key or os.environ.get("LICENSECHAIN_API_KEY", "")
        base_url = os.environ.get("LICENSECHAIN_BASE_URL") or DEFAULT_BASE_URL
        timeout = _env_number("LICENSECHAIN_TIMEOUT", 30.0, float)
        max_retries = _env_number("LICENSECHAIN_MAX_RETRIES", 3, int)
        retry_delay = _env_number("LICENSECHAIN_RETRY_DELAY", 1.0, float)
        return cls(
            api_key=key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            retry_delay=retry_delay,
        )


__all__ = ["ClientConfig", "DEFAULT_BASE_URL", "DEFAULT_USER_AGENT"]
