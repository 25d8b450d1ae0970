"""
Pytest configuration and fixtures.
"""

import hashlib
import hmac
import json
import time
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from charityonme.config import Settings
from charityonme.errors import UpstreamError
from charityonme.main import create_app
from charityonme.monitoring.alerts import AlertManager
from charityonme.monitoring.logger import setup_logging
from charityonme.payments.gateway import StripeGateway
from charityonme.payments.models import CheckoutMode, ProviderIntent, ProviderSession

WEBHOOK_SECRET = "whsec_test_secret"


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test logging so structlog output can be captured."""
    setup_logging(log_level="DEBUG", cache_loggers=False)
    yield


class FakeGateway(StripeGateway):
    """Stripe gateway that records outbound calls instead of making them.

    Signature verification is inherited, so webhooks go through the real
    Stripe signing scheme.
    """

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.intent_calls: List[Dict[str, Any]] = []
        self.session_calls: List[Dict[str, Any]] = []
        self.error: Optional[str] = None

    async def create_intent(self, amount, currency, metadata):
        self.intent_calls.append({"amount": amount, "currency": currency, "metadata": metadata})
        if self.error:
            raise UpstreamError(self.error)
        return ProviderIntent(id="pi_test_123", client_secret="pi_test_123_secret_abc")

    async def create_session(
        self,
        price_id: str,
        quantity: int,
        mode: CheckoutMode,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None,
    ):
        self.session_calls.append({
            "price_id": price_id,
            "quantity": quantity,
            "mode": mode,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
        })
        if self.error:
            raise UpstreamError(self.error)
        return ProviderSession(id="cs_test_123", url="https://checkout.stripe.com/c/pay/cs_test_123")


class RecordingAlerts(AlertManager):
    """Alert manager that keeps alerts in memory."""

    def __init__(self, settings: Settings, fail: bool = False):
        super().__init__(settings)
        self.sent: List[Dict[str, Any]] = []
        self.fail = fail

    def send_alert(self, level, title, message, context=None):
        if self.fail:
            raise RuntimeError("alert sink unavailable")
        self.sent.append({"level": level, "title": title, "message": message, "context": context})


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header for a payload."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def make_event(event_type: str, obj: Dict[str, Any], event_id: str = "evt_test_1") -> bytes:
    """Serialize a Stripe event envelope."""
    return json.dumps({
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": 1700000000,
        "livemode": False,
        "data": {"object": obj},
    }).encode("utf-8")


@pytest.fixture
def settings():
    """Settings with test Stripe keys and default donation bounds."""
    return Settings(
        stripe_secret_key="sk_test_123",
        stripe_publishable_key="pk_test_123",
        stripe_webhook_secret=WEBHOOK_SECRET,
        price_id_one_time="price_one_time",
        min_donation_amount=100,
        max_donation_amount=100000,
        frontend_url="https://charityonme.example",
        domain="https://charityonme.example",
        sentry_dsn=None,
    )


@pytest.fixture
def gateway(settings):
    return FakeGateway(settings)


@pytest.fixture
def alerts(settings):
    return RecordingAlerts(settings)


@pytest.fixture
def app(settings, gateway, alerts):
    return create_app(settings, gateway=gateway, alerts=alerts)


@pytest.fixture
def client(app):
    """HTTP client for the application."""
    return TestClient(app)
