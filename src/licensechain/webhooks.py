"""Webhook signature verification and typed webhook events."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from collections import defaultdict
from enum import Enum
from typing import Annotated, Any, Callable, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import authentication_error, validation_error
from .utils import parse_timestamp

logger = logging.getLogger("licensechain.webhooks")

DEFAULT_TOLERANCE = 300


class WebhookEventType(str, Enum):
    LICENSE_CREATED = "license.created"
    LICENSE_UPDATED = "license.updated"
    LICENSE_REVOKED = "license.revoked"
    LICENSE_EXPIRED = "license.expired"
    USER_CREATED = "user.created"
    USER_UPDATED = "user.updated"
    USER_DELETED = "user.deleted"
    PRODUCT_CREATED = "product.created"
    PRODUCT_UPDATED = "product.updated"
    PRODUCT_DELETED = "product.deleted"
    PAYMENT_COMPLETED = "payment.completed"
    PAYMENT_FAILED = "payment.failed"
    PAYMENT_REFUNDED = "payment.refunded"


class WebhookEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    id: Optional[str] = None
    timestamp: Optional[Union[str, int, float]] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class LicenseEvent(WebhookEvent):
    type: Literal["license.created", "license.updated", "license.revoked", "license.expired"]


class UserEvent(WebhookEvent):
    type: Literal["user.created", "user.updated", "user.deleted"]


class ProductEvent(WebhookEvent):
    type: Literal["product.created", "product.updated", "product.deleted"]


class PaymentEvent(WebhookEvent):
    type: Literal["payment.completed", "payment.failed", "payment.refunded"]


class UnrecognizedEvent(WebhookEvent):
    """An event whose ``type`` this SDK does not know; ``raw`` keeps the full mapping."""

    raw: Dict[str, Any] = Field(default_factory=dict)


KnownEvent = Annotated[
    Union[LicenseEvent, UserEvent, ProductEvent, PaymentEvent],
    Field(discriminator="type"),
]
_KNOWN_EVENTS = TypeAdapter(KnownEvent)
KNOWN_EVENT_TYPES = frozenset(member.value for member in WebhookEventType)

EventCallback = Callable[[WebhookEvent], Any]


def _as_bytes(value: Union[str, bytes]) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def create_signature(payload: Union[str, bytes], secret: Union[str, bytes]) -> str:
    """Hex-encoded HMAC-SHA256 of ``payload`` keyed with ``secret``."""
    return hmac.new(_as_bytes(secret), _as_bytes(payload), hashlib.sha256).hexdigest()


def verify_signature(payload: Union[str, bytes], signature: str, secret: Union[str, bytes]) -> bool:
    if not signature:
        return False
    expected = create_signature(payload, secret)
    return hmac.compare_digest(_as_bytes(signature), expected.encode("ascii"))


def canonical_payload(data: Any) -> str:
    """Serialisation of an event's ``data`` that embedded signatures are computed over."""
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False)


def parse_event(event_data: Mapping[str, Any]) -> WebhookEvent:
    event_type = event_data.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise validation_error("Missing event type")
    try:
        if event_type in KNOWN_EVENT_TYPES:
            return _KNOWN_EVENTS.validate_python(dict(event_data))
        return UnrecognizedEvent.model_validate({**event_data, "raw": dict(event_data)})
    except PydanticValidationError as exc:
        raise validation_error(f"Invalid webhook event: {exc}") from exc


class WebhookHandler:
    def __init__(
        self,
        secret: str,
        tolerance: int = DEFAULT_TOLERANCE,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise validation_error("Webhook secret is required")
        self._secret = secret
        self._tolerance = tolerance if tolerance > 0 else DEFAULT_TOLERANCE
        self._clock = clock
        self._callbacks: Dict[str, List[EventCallback]] = defaultdict(list)

    @property
    def tolerance(self) -> int:
        return self._tolerance

    def on(self, event_type: Union[str, WebhookEventType]) -> Callable[[EventCallback], EventCallback]:
        key = event_type.value if isinstance(event_type, WebhookEventType) else event_type

        def register(callback: EventCallback) -> EventCallback:
            self._callbacks[key].append(callback)
            return callback

        return register

    def verify_signature(self, payload: Union[str, bytes], signature: str) -> bool:
        return verify_signature(payload, signature, self._secret)

    def verify_timestamp(self, timestamp: Union[str, int, float]) -> None:
        try:
            sent_at = parse_timestamp(timestamp).timestamp()
        except (TypeError, ValueError, OverflowError, OSError) as exc:
            raise validation_error(f"invalid timestamp format: {exc}") from exc
        skew = abs(self._clock() - sent_at)
        if skew > self._tolerance:
            raise authentication_error(f"webhook timestamp outside tolerance: {int(skew)} seconds")

    def verify(self, payload: Union[str, bytes], signature: str, timestamp: Union[str, int, float]) -> None:
        self.verify_timestamp(timestamp)
        if not self.verify_signature(payload, signature):
            raise authentication_error("Invalid webhook signature")

    def process_event(self, event_data: Mapping[str, Any]) -> WebhookEvent:
        """Verify an event carrying its own signature and dispatch it to callbacks."""
        signature = event_data.get("signature")
        if not isinstance(signature, str):
            raise validation_error("Missing signature")
        timestamp = event_data.get("timestamp")
        if not isinstance(timestamp, (str, int, float)):
            raise validation_error("Missing timestamp")
        self.verify(canonical_payload(event_data.get("data")), signature, timestamp)

        event = parse_event(event_data)
        if isinstance(event, UnrecognizedEvent):
            logger.warning("Unknown webhook event type: %s", event.type)
        callbacks = self._callbacks.get(event.type, [])
        if not callbacks:
            logger.debug("No handler registered for webhook event %s id=%s", event.type, event.id)
        for callback in callbacks:
            callback(event)
        return event


__all__ = [
    "DEFAULT_TOLERANCE",
    "KNOWN_EVENT_TYPES",
    "LicenseEvent",
    "PaymentEvent",
    "ProductEvent",
    "UnrecognizedEvent",
    "UserEvent",
    "WebhookEvent",
    "WebhookEventType",
    "WebhookHandler",
    "canonical_payload",
    "create_signature",
    "parse_event",
    "verify_signature",
]
