"""
Application settings loaded from the environment.

Settings are read once at startup and handed to each component explicitly.
"""

from typing import List, Optional
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from charityonme import __version__


class Settings(BaseSettings):
    """Donation backend settings."""

    model_config = SettingsConfigDict(extra="ignore")

    # Application
    app_name: str = "CharityOnMe"
    app_version: str = __version__
    environment: str = "development"
    port: int = 3000

    # Stripe
    stripe_secret_key: Optional[str] = None
    stripe_publishable_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_api_version: str = "2024-06-20"
    price_id_one_time: Optional[str] = None

    # Donation bounds in minor currency units ($1.00 to $1,000.00)
    min_donation_amount: int = Field(100, ge=1)
    max_donation_amount: int = Field(100000, ge=1)

    # Web
    frontend_url: str = "http://localhost:3000"
    domain: str = "http://localhost:3000"

    # Logging
    log_level: str = "INFO"
    log_file_path: Optional[str] = None
    log_json: bool = False

    # Sentry
    sentry_dsn: Optional[str] = None
    sentry_environment: Optional[str] = None
    sentry_traces_sample_rate: float = 0.1

    @model_validator(mode="after")
    def check_donation_bounds(self) -> "Settings":
        if self.min_donation_amount > self.max_donation_amount:
            raise ValueError(
                "MIN_DONATION_AMOUNT must not exceed MAX_DONATION_AMOUNT"
            )
        return self

    @property
    def public_base_url(self) -> str:
        """Base URL used to build checkout redirect links."""
        return self.domain.rstrip("/")

    def missing_stripe_settings(self) -> List[str]:
        """Names of required Stripe environment variables that are unset."""
        required = {
            "STRIPE_SECRET_KEY": self.stripe_secret_key,
            "STRIPE_WEBHOOK_SECRET": self.stripe_webhook_secret,
            "STRIPE_PUBLISHABLE_KEY": self.stripe_publishable_key,
        }
        return [name for name, value in required.items() if not value]
