from __future__ import annotations

from datetime import datetime, timezone

import pytest

from licensechain.errors import AuthenticationError, ValidationError
from licensechain.webhooks import (
    LicenseEvent,
    PaymentEvent,
    UnrecognizedEvent,
    WebhookEventType,
    WebhookHandler,
    canonical_payload,
    create_signature,
    parse_event,
    verify_signature,
)

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
SECRET = "whsec_test"


@pytest.mark.parametrize(
    "payload, secret",
    [
        ('{"id":"evt_1"}', "secret"),
        ("", "secret"),
        ("ünïcødé payload", "k"),
        (b"\x00\x01binary", b"raw-secret"),
    ],
)
def test_signature_round_trip(payload, secret) -> None:
    assert verify_signature(payload, create_signature(payload, secret), secret)


def test_flipping_any_signature_character_fails() -> None:
    payload = '{"type":"license.created"}'
    signature = create_signature(payload, SECRET)
    for index, char in enumerate(signature):
        replacement = "0" if char != "0" else "1"
        tampered = signature[:index] + replacement + signature[index + 1 :]
        assert not verify_signature(payload, tampered, SECRET)


def test_wrong_secret_or_empty_signature_fails() -> None:
    signature = create_signature("payload", SECRET)
    assert not verify_signature("payload", signature, "other")
    assert not verify_signature("payload", "", SECRET)


def _handler(**kwargs) -> WebhookHandler:
    return WebhookHandler(SECRET, clock=lambda: NOW.timestamp(), **kwargs)


def test_timestamp_tolerance() -> None:
    handler = _handler()
    assert handler.tolerance == 300
    handler.verify_timestamp("2026-01-15T11:56:00Z")
    handler.verify_timestamp(int(NOW.timestamp()) + 120)
    with pytest.raises(AuthenticationError):
        handler.verify_timestamp("2026-01-15T11:50:00Z")
    with pytest.raises(ValidationError):
        handler.verify_timestamp("yesterday")


def test_custom_tolerance() -> None:
    handler = _handler(tolerance=30)
    with pytest.raises(AuthenticationError):
        handler.verify_timestamp("2026-01-15T11:59:00+00:00")


def test_verify_rejects_bad_signature() -> None:
    handler = _handler()
    payload = '{"a":1}'
    handler.verify(payload, create_signature(payload, SECRET), "2026-01-15T12:00:00Z")
    with pytest.raises(AuthenticationError):
        handler.verify(payload, "deadbeef", "2026-01-15T12:00:00Z")


def test_process_event_dispatches_typed_event() -> None:
    handler = _handler()
    seen = []

    @handler.on(WebhookEventType.LICENSE_REVOKED)
    def on_revoked(event):
        seen.append(event)

    data = {"license_id": "lic_1", "reason": "chargeback"}
    event = handler.process_event(
        {
            "id": "evt_1",
            "type": "license.revoked",
            "timestamp": "2026-01-15T12:00:00Z",
            "data": data,
            "signature": create_signature(canonical_payload(data), SECRET),
        }
    )

    assert isinstance(event, LicenseEvent)
    assert seen == [event]
    assert event.data["license_id"] == "lic_1"


def test_process_event_requires_signature_and_timestamp() -> None:
    handler = _handler()
    with pytest.raises(ValidationError):
        handler.process_event({"type": "license.created", "timestamp": "2026-01-15T12:00:00Z", "data": {}})
    with pytest.raises(ValidationError):
        handler.process_event({"type": "license.created", "signature": "abc", "data": {}})
    with pytest.raises(AuthenticationError):
        handler.process_event(
            {
                "type": "license.created",
                "timestamp": "2026-01-15T12:00:00Z",
                "data": {"x": 1},
                "signature": create_signature(canonical_payload({"x": 2}), SECRET),
            }
        )


def test_parse_event_variants() -> None:
    payment = parse_event({"type": "payment.refunded", "data": {"amount": 10}})
    assert isinstance(payment, PaymentEvent)

    raw = {"type": "subscription.paused", "data": {"plan": "pro"}, "extra": True}
    unknown = parse_event(raw)
    assert isinstance(unknown, UnrecognizedEvent)
    assert unknown.raw == raw

    with pytest.raises(ValidationError):
        parse_event({"data": {}})


def test_handler_requires_secret() -> None:
    with pytest.raises(ValidationError):
        WebhookHandler("")
