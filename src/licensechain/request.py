"""Request construction for the LicenseChain API."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, TypeAdapter

from .config import ClientConfig
from .errors import validation_error

_ANY = TypeAdapter(Any)


@dataclass(frozen=True)
class OutgoingRequest:
    method: str
    path: str
    params: Optional[Mapping[str, Any]] = None
    body: Any = None


def path_segment(value: str, field_name: str = "id") -> str:
    """Escape a caller-supplied identifier for use as a single path segment."""
    if value is None or not str(value).strip():
        raise validation_error(f"{field_name} cannot be empty")
    return quote(str(value).strip(), safe="")


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    return _ANY.dump_python(value, mode="json")


def encode_body(body: Any) -> Optional[bytes]:
    if body is None:
        return None
    try:
        return json.dumps(body, separators=(",", ":"), default=_jsonable).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise validation_error(f"Request body is not JSON serialisable: {exc}") from exc


class RequestBuilder:
    """Turns an :class:`OutgoingRequest` into an authenticated ``httpx.Request``."""

    def __init__(self, config: ClientConfig) -> None:
        self._config = config

    def headers(self) -> Dict[str, str]:
        if not self._config.api_key:
            raise validation_error("API key is required", code="invalid_api_key")
        headers = dict(self._config.headers)
        headers.update(
            {
                "Authorization": f"Bearer {self._config.api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": self._config.user_agent,
            }
        )
        return headers

    def url(self, path: str) -> httpx.URL:
        if not path.startswith("/"):
            path = "/" + path
        try:
            url = httpx.URL(self._config.base_url + path)
        except httpx.InvalidURL as exc:
            raise validation_error(f"Invalid URL: {exc}", code="invalid_url") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise validation_error(f"Invalid URL: {url}", code="invalid_url")
        return url

    def build(self, request: OutgoingRequest) -> httpx.Request:
        params = {
            key: (str(value).lower() if isinstance(value, bool) else str(value))
            for key, value in (request.params or {}).items()
            if value is not None
        }
        return httpx.Request(
            request.method.upper(),
            self.url(request.path),
            params=params or None,
            content=encode_body(request.body),
            headers=self.headers(),
        )


__all__ = ["OutgoingRequest", "RequestBuilder", "encode_body", "path_segment"]
