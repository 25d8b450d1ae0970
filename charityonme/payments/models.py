"""
Data models for donation payments and Stripe webhooks.
"""

from typing import Optional, Dict, Any
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class CheckoutMode(str, Enum):
    """Stripe Checkout modes."""
    PAYMENT = "payment"
    SUBSCRIPTION = "subscription"


class EventKind(str, Enum):
    """Stripe webhook event types the receiver acts on."""
    PAYMENT_SUCCEEDED = "payment_intent.succeeded"
    PAYMENT_FAILED = "payment_intent.payment_failed"
    PAYMENT_CANCELED = "payment_intent.canceled"
    DISPUTE_CREATED = "charge.dispute.created"
    CHECKOUT_COMPLETED = "checkout.session.completed"
    UNHANDLED = "unhandled"

    @classmethod
    def from_type(cls, event_type: str) -> "EventKind":
        """Map a Stripe event type to its kind, UNHANDLED when unknown."""
        try:
            return cls(event_type)
        except ValueError:
            return cls.UNHANDLED


class PaymentIntentRequest(BaseModel):
    """Body of a custom-amount donation request."""

    amount: Optional[int] = Field(None, description="Amount in cents")
    currency: str = Field("usd", description="Currency code")
    metadata: Dict[str, str] = Field(default_factory=dict, description="Custom metadata")


class PaymentIntentResult(BaseModel):
    """Client secret handed to the browser payment widget."""

    model_config = ConfigDict(populate_by_name=True)

    client_secret: str = Field(..., alias="clientSecret")
    payment_intent_id: str = Field(..., alias="paymentIntentId")


class CheckoutSessionRequest(BaseModel):
    """Body of a hosted checkout request."""

    model_config = ConfigDict(populate_by_name=True)

    price_id: Optional[str] = Field(None, alias="priceId", description="Stripe price ID")
    quantity: int = Field(1, ge=1, description="Number of units")
    mode: CheckoutMode = Field(CheckoutMode.PAYMENT, description="One-off or subscription")
    metadata: Optional[Dict[str, str]] = Field(None, description="Custom metadata")


class CheckoutSessionResult(BaseModel):
    """Redirect target of a hosted checkout session."""

    url: str = Field(..., description="Checkout page URL")


class StripeConfigResponse(BaseModel):
    """Public Stripe configuration for browser clients."""

    model_config = ConfigDict(populate_by_name=True)

    publishable_key: Optional[str] = Field(None, alias="publishableKey")


class ProviderIntent(BaseModel):
    """Payment intent as returned by the provider."""

    id: str
    client_secret: str


class ProviderSession(BaseModel):
    """Checkout session as returned by the provider."""

    id: str
    url: str


class EventData(BaseModel):
    """Envelope around the event payload."""

    object: Dict[str, Any] = Field(..., description="Event payload")


class WebhookEvent(BaseModel):
    """Stripe webhook event data."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Event ID")
    type: str = Field(..., description="Event type")
    created: Optional[int] = Field(None, description="Unix timestamp")
    data: EventData = Field(..., description="Event data")
    livemode: bool = Field(False, description="Whether this is a live event")

    @property
    def kind(self) -> EventKind:
        return EventKind.from_type(self.type)
