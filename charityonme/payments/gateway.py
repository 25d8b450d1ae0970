"""
Payment provider gateway: the boundary between the app and Stripe.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict
import stripe
from pydantic import ValidationError as PayloadError

from charityonme.config import Settings
from charityonme.errors import SignatureError, UpstreamError
from charityonme.payments.models import (
    CheckoutMode,
    ProviderIntent,
    ProviderSession,
    WebhookEvent,
)


class PaymentGateway(ABC):
    """Operations the donation backend needs from a payment provider."""

    @abstractmethod
    async def create_session(
        self,
        price_id: str,
        quantity: int,
        mode: CheckoutMode,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> ProviderSession:
        """Create a hosted checkout session. Raises UpstreamError on failure."""

    @abstractmethod
    async def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: Dict[str, str],
    ) -> ProviderIntent:
        """Create a payment intent. Raises UpstreamError on failure."""

    @abstractmethod
    def verify_event_signature(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        """Verify a webhook over its raw bytes. Raises SignatureError on failure."""


class StripeGateway(PaymentGateway):
    """Gateway backed by the Stripe API."""

    def __init__(self, settings: Settings):
        """
        Initialize the Stripe gateway.

        Args:
            settings: Application settings holding the Stripe keys
        """
        self.api_key = settings.stripe_secret_key
        self.api_version = settings.stripe_api_version
        self.webhook_secret = settings.stripe_webhook_secret

    async def create_session(
        self,
        price_id: str,
        quantity: int,
        mode: CheckoutMode,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> ProviderSession:
        session_params = {
            "mode": mode.value,
            "line_items": [{"price": price_id, "quantity": quantity}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "billing_address_collection": "auto",
            "allow_promotion_codes": True,
        }

        if metadata:
            session_params["metadata"] = metadata

        try:
            session = await stripe.checkout.Session.create_async(
                api_key=self.api_key,
                stripe_version=self.api_version,
                **session_params,
            )
        except stripe.StripeError as e:
            raise UpstreamError(_provider_message(e)) from e

        return ProviderSession(id=session.id, url=session.url)

    async def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: Dict[str, str],
    ) -> ProviderIntent:
        try:
            payment_intent = await stripe.PaymentIntent.create_async(
                api_key=self.api_key,
                stripe_version=self.api_version,
                amount=amount,
                currency=currency,
                automatic_payment_methods={"enabled": True},
                metadata=metadata,
            )
        except stripe.StripeError as e:
            raise UpstreamError(_provider_message(e)) from e

        return ProviderIntent(
            id=payment_intent.id,
            client_secret=payment_intent.client_secret,
        )

    def verify_event_signature(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        """
        Verify the Stripe-Signature header and parse the event.

        The signature covers the exact request bytes, so the payload is only
        parsed as JSON after the header checks out.

        Args:
            payload: Raw request body
            signature: Value of the Stripe-Signature header

        Returns:
            The verified event

        Raises:
            SignatureError: If the event cannot be authenticated or parsed
        """
        if not self.webhook_secret:
            raise SignatureError("Webhook secret is not configured")
        if not signature:
            raise SignatureError("No stripe-signature header value was provided")

        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SignatureError("Payload is not valid UTF-8") from e

        try:
            stripe.WebhookSignature.verify_header(
                text,
                signature,
                self.webhook_secret,
                stripe.Webhook.DEFAULT_TOLERANCE,
            )
        except stripe.SignatureVerificationError as e:
            raise SignatureError(_provider_message(e)) from e

        try:
            return WebhookEvent.model_validate_json(payload)
        except PayloadError as e:
            raise SignatureError("Invalid payload") from e


def _provider_message(error: stripe.StripeError) -> str:
    return error.user_message or str(error)
