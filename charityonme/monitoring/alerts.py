"""
Alert configuration and notification system.
"""

from typing import Optional, Dict, Any
from enum import Enum
import sentry_sdk

from charityonme.config import Settings
from charityonme.monitoring.logger import get_logger

logger = get_logger(__name__)


class AlertLevel(str, Enum):
    """Alert severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AlertManager:
    """Logs alerts and forwards serious ones to Sentry."""

    def __init__(self, settings: Settings):
        """
        Initialize alert manager.

        Args:
            settings: Application settings; Sentry is enabled when a DSN is set
        """
        self.sentry_enabled = False

        if settings.sentry_dsn:
            sentry_sdk.init(
                dsn=settings.sentry_dsn,
                environment=settings.sentry_environment or settings.environment,
                traces_sample_rate=settings.sentry_traces_sample_rate,
            )
            self.sentry_enabled = True
            logger.info("Sentry error tracking initialized")

    def send_alert(
        self,
        level: AlertLevel,
        title: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Send an alert notification.

        Args:
            level: Alert severity level
            title: Alert title
            message: Alert message
            context: Additional context data
        """
        log_method = getattr(logger, level.value, logger.info)
        log_method(
            f"ALERT: {title}",
            extra={
                "alert_level": level.value,
                "message": message,
                **(context or {}),
            }
        )

        if self.sentry_enabled and level in [AlertLevel.ERROR, AlertLevel.CRITICAL]:
            with sentry_sdk.new_scope() as scope:
                scope.set_level(level.value)
                scope.set_context("alert", {
                    "title": title,
                    "message": message,
                    **(context or {}),
                })
                sentry_sdk.capture_message(f"{title}: {message}")

    def alert_payment_failure(self, payment_intent_id: str, error: Optional[str]) -> None:
        """Alert on a failed donation payment."""
        self.send_alert(
            level=AlertLevel.WARNING,
            title="Donation Payment Failed",
            message=f"Payment failed for intent {payment_intent_id}",
            context={"payment_intent_id": payment_intent_id, "error": error},
        )

    def alert_dispute_created(
        self,
        dispute_id: str,
        amount: Optional[int],
        reason: Optional[str],
    ) -> None:
        """Alert when a donor disputes a charge."""
        self.send_alert(
            level=AlertLevel.ERROR,
            title="Donation Disputed",
            message=f"Dispute {dispute_id} opened: {reason or 'unknown reason'}",
            context={"dispute_id": dispute_id, "amount": amount, "reason": reason},
        )
