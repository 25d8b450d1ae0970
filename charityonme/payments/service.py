"""
Donation service: validates donation requests and starts Stripe payments.
"""

from charityonme.config import Settings
from charityonme.errors import UpstreamError, ValidationError
from charityonme.payments.gateway import PaymentGateway
from charityonme.payments.models import (
    CheckoutSessionRequest,
    CheckoutSessionResult,
    PaymentIntentRequest,
    PaymentIntentResult,
    StripeConfigResponse,
)
from charityonme.monitoring.logger import get_logger

logger = get_logger(__name__)

# Tag stamped on every payment intent created by this backend
SOURCE_TAG = "charityonme"


def format_dollars(amount: int) -> str:
    """Render cents as dollars, dropping the fraction when it is zero."""
    dollars = amount / 100
    if dollars.is_integer():
        return str(int(dollars))
    return f"{dollars:.2f}"


class DonationService:
    """Creates payment intents and checkout sessions for donations."""

    def __init__(self, settings: Settings, gateway: PaymentGateway):
        """
        Initialize the donation service.

        Args:
            settings: Application settings (bounds, prices, redirect domain)
            gateway: Payment provider gateway
        """
        self.settings = settings
        self.gateway = gateway

    def validate_amount(self, amount) -> int:
        """
        Check a donation amount against the configured bounds.

        Args:
            amount: Amount in cents, possibly missing

        Returns:
            The amount, unchanged

        Raises:
            ValidationError: If the amount is missing or out of range
        """
        min_amount = self.settings.min_donation_amount
        max_amount = self.settings.max_donation_amount

        if not amount or amount < min_amount or amount > max_amount:
            raise ValidationError(
                f"Amount must be between ${format_dollars(min_amount)} "
                f"and ${format_dollars(max_amount)}"
            )
        return amount

    async def create_payment_intent(self, request: PaymentIntentRequest) -> PaymentIntentResult:
        """
        Create a payment intent for a custom donation amount.

        Args:
            request: Amount, currency and donor metadata

        Returns:
            Client secret and payment intent ID

        Raises:
            ValidationError: If the amount is out of range
            UpstreamError: If Stripe rejects the request
        """
        amount = self.validate_amount(request.amount)
        metadata = {**request.metadata, "source": SOURCE_TAG}

        try:
            intent = await self.gateway.create_intent(
                amount=amount,
                currency=request.currency,
                metadata=metadata,
            )
        except UpstreamError as e:
            logger.error(
                "Error creating payment intent",
                extra={"amount": amount, "error_message": e.message},
            )
            raise UpstreamError("Failed to create payment intent") from e

        logger.info(
            "Payment intent created",
            extra={
                "payment_intent_id": intent.id,
                "amount": amount,
                "currency": request.currency,
            }
        )

        return PaymentIntentResult(
            client_secret=intent.client_secret,
            payment_intent_id=intent.id,
        )

    async def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        """
        Create a hosted Stripe Checkout session.

        Args:
            request: Price, quantity, mode and metadata

        Returns:
            URL of the checkout page

        Raises:
            ValidationError: If no price is given or configured
            UpstreamError: If Stripe rejects the request
        """
        price_id = request.price_id or self.settings.price_id_one_time
        if not price_id:
            raise ValidationError("A priceId is required")

        base_url = self.settings.public_base_url

        try:
            session = await self.gateway.create_session(
                price_id=price_id,
                quantity=request.quantity,
                mode=request.mode,
                success_url=f"{base_url}/donate-success.html?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{base_url}/donate-cancel.html",
                metadata=request.metadata,
            )
        except UpstreamError as e:
            logger.error(
                "Error creating checkout session",
                extra={"price_id": price_id, "error_message": e.message},
            )
            raise

        logger.info(
            "Checkout session created",
            extra={
                "session_id": session.id,
                "price_id": price_id,
                "mode": request.mode.value,
            }
        )

        return CheckoutSessionResult(url=session.url)

    def stripe_config(self) -> StripeConfigResponse:
        return StripeConfigResponse(publishable_key=self.settings.stripe_publishable_key)
