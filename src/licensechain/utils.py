"""Validation, sanitisation and formatting helpers."""

from __future__ import annotations

import math
import re
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Tuple, Union

from .errors import validation_error

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
LICENSE_KEY_RE = re.compile(r"^[A-Z0-9]{32}$")
UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")

LICENSE_KEY_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
SUPPORTED_CURRENCIES = ("USD", "EUR", "GBP", "CAD", "AUD", "JPY", "CHF", "CNY")
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10

_HTML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
)


def validate_email(email: str) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None


def validate_license_key(license_key: str) -> bool:
    return bool(license_key) and LICENSE_KEY_RE.match(license_key) is not None


def validate_uuid(value: str) -> bool:
    return bool(value) and UUID_RE.match(value.lower()) is not None


def validate_amount(amount: float) -> bool:
    return amount > 0 and not math.isnan(amount) and not math.isinf(amount)


def validate_currency(currency: str) -> bool:
    return bool(currency) and currency.upper() in SUPPORTED_CURRENCIES


def validate_pagination(page: int, limit: int) -> Tuple[int, int]:
    """Clamp page to >= 1 and limit to 1..100 (defaulting to 10)."""
    page = page if page and page >= 1 else 1
    if not limit or limit < 1:
        limit = DEFAULT_PAGE_SIZE
    return page, min(limit, MAX_PAGE_SIZE)


def require_not_empty(value: Any, field_name: str) -> None:
    if value is None or not str(value).strip():
        raise validation_error(f"{field_name} cannot be empty")


def require_positive(value: float, field_name: str) -> None:
    if value <= 0:
        raise validation_error(f"{field_name} must be positive")


def require_range(value: float, minimum: float, maximum: float, field_name: str) -> None:
    if value < minimum or value > maximum:
        raise validation_error(f"{field_name} must be between {minimum} and {maximum}")


def parse_timestamp(value: Union[str, int, float]) -> datetime:
    """Parse an RFC 3339 string or unix seconds into an aware datetime."""
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    text = value.strip()
    if re.fullmatch(r"\d+(\.\d+)?", text):
        return datetime.fromtimestamp(float(text), tz=timezone.utc)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def validate_date_range(start_date: str, end_date: str) -> None:
    try:
        start = parse_timestamp(start_date)
    except ValueError as exc:
        raise validation_error(f"invalid start date: {exc}") from exc
    try:
        end = parse_timestamp(end_date)
    except ValueError as exc:
        raise validation_error(f"invalid end date: {exc}") from exc
    if start > end:
        raise validation_error("start date must be before or equal to end date")


def sanitize_input(text: str) -> str:
    for raw, escaped in _HTML_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def sanitize_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    for key, value in metadata.items():
        if isinstance(value, str):
            sanitized[key] = sanitize_input(value)
        elif isinstance(value, list):
            sanitized[key] = [sanitize_input(item) if isinstance(item, str) else item for item in value]
        elif isinstance(value, dict):
            sanitized[key] = sanitize_metadata(value)
        else:
            sanitized[key] = value
    return sanitized


def generate_license_key(length: int = 32) -> str:
    return "".join(secrets.choice(LICENSE_KEY_ALPHABET) for _ in range(length))


def format_bytes(size: int) -> str:
    units = ("B", "KB", "MB", "GB", "TB", "PB")
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{value:.1f} {units[index]}"


def format_duration(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    if seconds < 86400:
        return f"{seconds // 3600}h {(seconds % 3600) // 60}m"
    return f"{seconds // 86400}d {(seconds % 86400) // 3600}h"


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:].lower() if text else text


def to_snake_case(text: str) -> str:
    return re.sub(r"([a-z])([A-Z])", r"\1_\2", text).lower()


def to_pascal_case(text: str) -> str:
    return "".join(capitalize_first(word) for word in text.split("_"))


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max(0, max_length - 3)] + "..."


def slugify(text: str) -> str:
    text = re.sub(r"[^a-z0-9\s-]", "", text.lower())
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


__all__ = [
    "capitalize_first",
    "format_bytes",
    "format_duration",
    "format_timestamp",
    "generate_license_key",
    "parse_timestamp",
    "require_not_empty",
    "require_positive",
    "require_range",
    "sanitize_input",
    "sanitize_metadata",
    "slugify",
    "to_pascal_case",
    "to_snake_case",
    "truncate",
    "validate_amount",
    "validate_currency",
    "validate_date_range",
    "validate_email",
    "validate_license_key",
    "validate_pagination",
    "validate_uuid",
]
