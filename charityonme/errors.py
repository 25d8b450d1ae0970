"""
Error types raised by the donation backend.

Each error carries the HTTP status it maps to at the API boundary.
"""


class DonationError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DonationError):
    """Caller input violates a configured bound."""

    status_code = 400


class SignatureError(DonationError):
    """Webhook authenticity could not be established."""

    status_code = 400


class UpstreamError(DonationError):
    """The payment provider call failed."""

    status_code = 500


class HandlerError(DonationError):
    """A webhook side effect failed after the event was verified."""

    status_code = 500
