"""
HTTP routes for donation payments and Stripe webhooks.
"""

from typing import Dict, Optional
from fastapi import APIRouter, Depends, Header, Request

from charityonme.payments.models import (
    CheckoutSessionRequest,
    CheckoutSessionResult,
    PaymentIntentRequest,
    PaymentIntentResult,
    StripeConfigResponse,
)
from charityonme.payments.service import DonationService
from charityonme.payments.webhook_handler import WebhookReceiver

router = APIRouter(tags=["payments"])


def get_donation_service(request: Request) -> DonationService:
    return request.app.state.donation_service


def get_webhook_receiver(request: Request) -> WebhookReceiver:
    return request.app.state.webhook_receiver


@router.post("/api/create-payment-intent", response_model=PaymentIntentResult)
async def create_payment_intent(
    body: PaymentIntentRequest,
    service: DonationService = Depends(get_donation_service),
) -> PaymentIntentResult:
    """Create a payment intent for a custom donation amount."""
    return await service.create_payment_intent(body)


@router.post("/create-checkout-session", response_model=CheckoutSessionResult)
async def create_checkout_session(
    body: Optional[CheckoutSessionRequest] = None,
    service: DonationService = Depends(get_donation_service),
) -> CheckoutSessionResult:
    """Create a hosted checkout session and return its URL."""
    return await service.create_checkout_session(body or CheckoutSessionRequest())


@router.get("/api/stripe-config", response_model=StripeConfigResponse)
async def stripe_config(
    service: DonationService = Depends(get_donation_service),
) -> StripeConfigResponse:
    """Expose the publishable key to browser clients."""
    return service.stripe_config()


@router.post("/webhook/stripe")
async def handle_stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    receiver: WebhookReceiver = Depends(get_webhook_receiver),
) -> Dict[str, bool]:
    """
    Handle Stripe webhook events.

    The body is read raw; verification runs over the exact bytes Stripe signed.
    """
    payload = await request.body()
    await receiver.handle(payload, stripe_signature)
    return {"received": True}
