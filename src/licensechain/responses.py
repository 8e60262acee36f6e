"""Maps completed HTTP exchanges onto decoded values or typed errors."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import LicenseChainError, error_for_status, invalid_response_error, undecodable_error
from .models import ErrorResponse


@lru_cache(maxsize=None)
def _adapter(result_type: Any) -> TypeAdapter:
    return TypeAdapter(result_type)


def error_from_response(response: httpx.Response) -> LicenseChainError:
    body = response.text
    try:
        envelope = ErrorResponse.model_validate_json(response.content)
    except PydanticValidationError:
        return undecodable_error(response.status_code, body)
    message = envelope.error or envelope.message or response.reason_phrase
    return error_for_status(
        response.status_code,
        message,
        code=envelope.code,
        details=envelope.details,
        body=body,
    )


def decode_response(response: httpx.Response, result_type: Optional[Any] = None) -> Any:
    if not response.is_success:
        raise error_from_response(response)
    if result_type is None or not response.content.strip():
        return None
    try:
        return _adapter(result_type).validate_json(response.content)
    except PydanticValidationError as exc:
        raise invalid_response_error(response.status_code, response.text, str(exc)) from exc


__all__ = ["decode_response", "error_from_response"]
