"""
Tests for Stripe webhook verification and event dispatch.
"""

import json
from datetime import datetime

import pytest
from structlog.testing import capture_logs

from charityonme.errors import HandlerError, SignatureError
from charityonme.main import create_app
from charityonme.payments.models import EventKind
from charityonme.payments.webhook_handler import WebhookReceiver
from fastapi.testclient import TestClient

from conftest import RecordingAlerts, make_event, sign_payload

HANDLER_EVENTS = {
    "Payment succeeded",
    "Donation recorded",
    "Payment failed",
    "Payment canceled",
    "Dispute created",
    "Donation completed",
}

PAYMENT_INTENT = {
    "id": "pi_test_123",
    "object": "payment_intent",
    "amount": 2500,
    "currency": "usd",
    "customer": "cus_123",
    "metadata": {"source": "charityonme", "campaign": "winter"},
}


def _post(client, payload: bytes, signature=None):
    headers = {"Content-Type": "application/json"}
    if signature is not None:
        headers["Stripe-Signature"] = signature
    return client.post("/webhook/stripe", content=payload, headers=headers)


def _handler_logs(logs):
    return [entry for entry in logs if entry["event"] in HANDLER_EVENTS]


def test_valid_payment_succeeded_runs_success_handler_once(client):
    payload = make_event("payment_intent.succeeded", PAYMENT_INTENT)

    with capture_logs() as logs:
        response = _post(client, payload, sign_payload(payload))

    assert response.status_code == 200
    assert response.json() == {"received": True}

    handled = _handler_logs(logs)
    assert [entry["event"] for entry in handled] == ["Payment succeeded", "Donation recorded"]

    succeeded = handled[0]["extra"]
    assert succeeded["amount"] == 2500
    assert succeeded["customer"] == "cus_123"
    assert succeeded["metadata"] == PAYMENT_INTENT["metadata"]

    donation = handled[1]["extra"]
    assert donation["amount"] == 2500 / 100
    assert donation["currency"] == "usd"
    datetime.fromisoformat(donation["timestamp"])


@pytest.mark.parametrize("body", [
    make_event("payment_intent.succeeded", PAYMENT_INTENT),
    b"not json at all",
    b"",
    b'{"type": "charge.dispute.created"}',
])
def test_bad_signature_is_rejected_without_handlers(client, body):
    """Payloads signed with the wrong secret never reach a handler."""
    with capture_logs() as logs:
        response = _post(client, body, sign_payload(body or b" ", secret="whsec_wrong"))

    assert response.status_code == 400
    assert response.text.startswith("Webhook Error: ")
    assert _handler_logs(logs) == []


def test_missing_signature_header_is_rejected(client):
    payload = make_event("payment_intent.succeeded", PAYMENT_INTENT)

    response = _post(client, payload)

    assert response.status_code == 400
    assert "stripe-signature" in response.text


def test_tampered_body_is_rejected(client):
    payload = make_event("payment_intent.succeeded", PAYMENT_INTENT)
    signature = sign_payload(payload)
    tampered = payload.replace(b"2500", b"250000")

    response = _post(client, tampered, signature)

    assert response.status_code == 400


def test_reformatted_body_is_rejected(client):
    """Re-serializing the JSON changes the bytes and breaks the signature."""
    payload = make_event("payment_intent.succeeded", PAYMENT_INTENT)
    signature = sign_payload(payload)
    reformatted = json.dumps(json.loads(payload), indent=2).encode("utf-8")

    response = _post(client, reformatted, signature)

    assert response.status_code == 400


def test_expired_timestamp_is_rejected(client):
    payload = make_event("payment_intent.succeeded", PAYMENT_INTENT)

    response = _post(client, payload, sign_payload(payload, timestamp=1000000000))

    assert response.status_code == 400


def test_signed_non_event_payload_is_rejected(client):
    payload = b'{"hello": "world"}'

    response = _post(client, payload, sign_payload(payload))

    assert response.status_code == 400
    assert response.text == "Webhook Error: Invalid payload"


def test_missing_webhook_secret_rejects_everything(settings, gateway, alerts):
    gateway.webhook_secret = None
    client = TestClient(create_app(settings, gateway=gateway, alerts=alerts))
    payload = make_event("payment_intent.succeeded", PAYMENT_INTENT)

    response = _post(client, payload, sign_payload(payload))

    assert response.status_code == 400


def test_replayed_event_is_acknowledged_twice(client):
    """No deduplication: each delivery is processed independently."""
    payload = make_event("payment_intent.succeeded", PAYMENT_INTENT)

    with capture_logs() as logs:
        first = _post(client, payload, sign_payload(payload))
        second = _post(client, payload, sign_payload(payload))

    assert first.status_code == 200
    assert second.status_code == 200
    recorded = [entry for entry in logs if entry["event"] == "Donation recorded"]
    assert len(recorded) == 2


def test_payment_failed_logs_reason_and_alerts(client, alerts):
    payload = make_event("payment_intent.payment_failed", {
        "id": "pi_failed",
        "amount": 1000,
        "last_payment_error": {"message": "Your card has insufficient funds."},
    })

    with capture_logs() as logs:
        response = _post(client, payload, sign_payload(payload))

    assert response.status_code == 200
    failed = [entry for entry in logs if entry["event"] == "Payment failed"]
    assert failed[0]["extra"]["error"] == "Your card has insufficient funds."
    assert alerts.sent[0]["context"]["payment_intent_id"] == "pi_failed"


def test_payment_canceled_logs_reason(client):
    payload = make_event("payment_intent.canceled", {
        "id": "pi_canceled",
        "amount": 1000,
        "cancellation_reason": "abandoned",
    })

    with capture_logs() as logs:
        response = _post(client, payload, sign_payload(payload))

    assert response.status_code == 200
    canceled = [entry for entry in logs if entry["event"] == "Payment canceled"]
    assert canceled[0]["extra"]["cancellation_reason"] == "abandoned"


def test_dispute_created_logs_reason_and_alerts(client, alerts):
    payload = make_event("charge.dispute.created", {
        "id": "dp_123",
        "object": "dispute",
        "charge": "ch_123",
        "amount": 2500,
        "reason": "fraudulent",
    })

    with capture_logs() as logs:
        response = _post(client, payload, sign_payload(payload))

    assert response.status_code == 200
    dispute = [entry for entry in logs if entry["event"] == "Dispute created"]
    assert dispute[0]["extra"]["reason"] == "fraudulent"
    assert alerts.sent[0]["title"] == "Donation Disputed"


def test_checkout_completed_logs_session_id(client):
    payload = make_event("checkout.session.completed", {
        "id": "cs_test_123",
        "object": "checkout.session",
        "amount_total": 5000,
        "customer_details": {"email": "donor@example.com"},
    })

    with capture_logs() as logs:
        response = _post(client, payload, sign_payload(payload))

    assert response.status_code == 200
    completed = [entry for entry in logs if entry["event"] == "Donation completed"]
    assert completed[0]["extra"]["session_id"] == "cs_test_123"


def test_unhandled_event_type_is_acknowledged(client):
    payload = make_event("customer.created", {"id": "cus_123"})

    with capture_logs() as logs:
        response = _post(client, payload, sign_payload(payload))

    assert response.status_code == 200
    assert _handler_logs(logs) == []
    assert any(entry["event"] == "Unhandled event type: customer.created" for entry in logs)


def test_handler_failure_returns_500(settings, gateway):
    """A failing alert sink surfaces as a handler error after verification."""
    alerts = RecordingAlerts(settings, fail=True)
    client = TestClient(create_app(settings, gateway=gateway, alerts=alerts))
    payload = make_event("charge.dispute.created", {"id": "dp_123", "reason": "fraudulent"})

    response = _post(client, payload, sign_payload(payload))

    assert response.status_code == 500
    assert response.json() == {"error": "Webhook handler failed"}


def test_event_kind_mapping():
    assert EventKind.from_type("payment_intent.succeeded") is EventKind.PAYMENT_SUCCEEDED
    assert EventKind.from_type("charge.dispute.created") is EventKind.DISPUTE_CREATED
    assert EventKind.from_type("invoice.paid") is EventKind.UNHANDLED


@pytest.mark.asyncio
async def test_receiver_raises_signature_error(gateway, alerts):
    receiver = WebhookReceiver(gateway, alerts)

    with pytest.raises(SignatureError):
        await receiver.handle(b"{}", "t=1,v1=deadbeef")


@pytest.mark.asyncio
async def test_receiver_wraps_handler_failure(settings, gateway):
    receiver = WebhookReceiver(gateway, RecordingAlerts(settings, fail=True))
    payload = make_event("payment_intent.payment_failed", {"id": "pi_failed"})

    with pytest.raises(HandlerError):
        await receiver.handle(payload, sign_payload(payload))
