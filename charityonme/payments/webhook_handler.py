"""
Webhook receiver for Stripe payment events.
"""

from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Optional

from charityonme.errors import HandlerError, SignatureError
from charityonme.payments.gateway import PaymentGateway
from charityonme.payments.models import EventKind, WebhookEvent
from charityonme.monitoring.alerts import AlertManager
from charityonme.monitoring.logger import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[WebhookEvent], Awaitable[None]]


class WebhookReceiver:
    """
    Verifies Stripe webhooks and dispatches them by event kind.

    Stripe sends events for:
    - payment_intent.succeeded: Donation was charged
    - payment_intent.payment_failed: Charge attempt failed
    - payment_intent.canceled: Intent was canceled
    - charge.dispute.created: Donor disputed a charge
    - checkout.session.completed: Hosted checkout finished

    Every other type is acknowledged and logged as unhandled. Redelivered
    events are processed again; there is no deduplication.
    """

    def __init__(self, gateway: PaymentGateway, alerts: AlertManager):
        self.gateway = gateway
        self.alerts = alerts
        self._handlers: Dict[EventKind, EventHandler] = {
            EventKind.PAYMENT_SUCCEEDED: self.handle_payment_succeeded,
            EventKind.PAYMENT_FAILED: self.handle_payment_failed,
            EventKind.PAYMENT_CANCELED: self.handle_payment_canceled,
            EventKind.DISPUTE_CREATED: self.handle_dispute_created,
            EventKind.CHECKOUT_COMPLETED: self.handle_checkout_completed,
            EventKind.UNHANDLED: self.handle_unhandled,
        }
        missing = set(EventKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No webhook handler for: {sorted(k.value for k in missing)}")

    async def handle(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        """
        Verify and dispatch one webhook delivery.

        Args:
            payload: Raw, unparsed request body
            signature: Stripe-Signature header value

        Returns:
            The verified event

        Raises:
            SignatureError: If the event cannot be authenticated
            HandlerError: If the event handler fails
        """
        try:
            event = self.gateway.verify_event_signature(payload, signature)
        except SignatureError as e:
            logger.error(f"Webhook signature verification failed: {e.message}")
            raise

        logger.info(
            "Stripe webhook received",
            extra={
                "event_type": event.type,
                "event_id": event.id,
            }
        )

        try:
            await self._handlers[event.kind](event)
        except Exception as e:
            logger.error(
                f"Error handling webhook: {e}",
                extra={"event_id": event.id, "event_type": event.type},
                exc_info=True,
            )
            raise HandlerError("Webhook handler failed") from e

        return event

    async def handle_payment_succeeded(self, event: WebhookEvent) -> None:
        """Handle successful donation payment."""
        payment_intent = event.data.object
        amount = payment_intent.get("amount") or 0

        logger.info(
            "Payment succeeded",
            extra={
                "id": payment_intent.get("id"),
                "amount": amount,
                "currency": payment_intent.get("currency"),
                "customer": payment_intent.get("customer"),
                "metadata": payment_intent.get("metadata", {}),
            }
        )

        # Persistence, receipts and donor emails hook in here
        donation = {
            "id": payment_intent.get("id"),
            "amount": amount / 100,
            "currency": payment_intent.get("currency"),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "metadata": payment_intent.get("metadata", {}),
        }
        logger.info("Donation recorded", extra=donation)

    async def handle_payment_failed(self, event: WebhookEvent) -> None:
        """Handle failed payment event."""
        payment_intent = event.data.object
        payment_id = payment_intent.get("id")
        last_error = payment_intent.get("last_payment_error") or {}
        error_message = last_error.get("message")

        logger.warning(
            "Payment failed",
            extra={
                "id": payment_id,
                "amount": payment_intent.get("amount"),
                "error": error_message,
            }
        )
        self.alerts.alert_payment_failure(payment_id, error_message)

    async def handle_payment_canceled(self, event: WebhookEvent) -> None:
        """Handle canceled payment event."""
        payment_intent = event.data.object

        logger.info(
            "Payment canceled",
            extra={
                "id": payment_intent.get("id"),
                "amount": payment_intent.get("amount"),
                "cancellation_reason": payment_intent.get("cancellation_reason"),
            }
        )

    async def handle_dispute_created(self, event: WebhookEvent) -> None:
        """Handle a new charge dispute."""
        dispute = event.data.object
        dispute_id = dispute.get("id")
        amount = dispute.get("amount")
        reason = dispute.get("reason")

        logger.warning(
            "Dispute created",
            extra={
                "id": dispute_id,
                "charge": dispute.get("charge"),
                "amount": amount,
                "reason": reason,
            }
        )
        self.alerts.alert_dispute_created(dispute_id, amount, reason)

    async def handle_checkout_completed(self, event: WebhookEvent) -> None:
        """Handle completed checkout session."""
        session = event.data.object
        customer_details = session.get("customer_details") or {}

        logger.info(
            "Donation completed",
            extra={
                "session_id": session.get("id"),
                "amount": session.get("amount_total"),
                "customer_email": customer_details.get("email"),
            }
        )

    async def handle_unhandled(self, event: WebhookEvent) -> None:
        logger.info(f"Unhandled event type: {event.type}")
