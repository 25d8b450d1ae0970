"""
Stripe payment integration for processing donations.
"""

from charityonme.payments.gateway import PaymentGateway, StripeGateway
from charityonme.payments.service import DonationService
from charityonme.payments.webhook_handler import WebhookReceiver

__all__ = ["PaymentGateway", "StripeGateway", "DonationService", "WebhookReceiver"]
