"""
Application bootstrap for the CharityOnMe donation backend.
"""

from contextlib import asynccontextmanager
from typing import Optional
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from charityonme.config import Settings
from charityonme.errors import DonationError, SignatureError
from charityonme.monitoring import health_check
from charityonme.monitoring.alerts import AlertManager
from charityonme.monitoring.logger import get_logger, setup_logging
from charityonme.payments import routes as payment_routes
from charityonme.payments.gateway import PaymentGateway, StripeGateway
from charityonme.payments.service import DonationService
from charityonme.payments.webhook_handler import WebhookReceiver
from charityonme.web import pages
from charityonme.web.security import error_response_headers, install_security

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    logger.info(f"CharityOnMe server running on port {settings.port}")
    logger.info(f"Health check: http://localhost:{settings.port}/health")

    for name in settings.missing_stripe_settings():
        logger.warning(f"{name} not set")

    logger.info("Stripe webhook endpoint: /webhook/stripe")
    logger.info("API endpoints: /api/stripe-config, /api/create-payment-intent")
    yield


def validation_message(exc: RequestValidationError) -> str:
    """Describe the first request validation error as "<field>: <message>"."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid JSON body"

    # loc is ("body", <field>, ...); integer parts are list indexes or offsets
    field = ".".join(
        part for part in first.get("loc", ())
        if isinstance(part, str) and part != "body"
    )
    return f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")


def configure_logging(settings: Settings) -> None:
    setup_logging(
        log_level=settings.log_level,
        log_file=settings.log_file_path,
        enable_json=settings.log_json,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Convert errors into safe JSON or text responses."""

    @app.exception_handler(SignatureError)
    async def signature_error_handler(request: Request, exc: SignatureError):
        return PlainTextResponse(f"Webhook Error: {exc.message}", status_code=exc.status_code)

    @app.exception_handler(DonationError)
    async def donation_error_handler(request: Request, exc: DonationError):
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": validation_message(exc)}, status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse({"error": "Not found"}, status_code=404)
        return JSONResponse(
            {"error": exc.detail},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error: {exc}",
            extra={"path": request.url.path},
            exc_info=exc,
        )
        return JSONResponse(
            {"error": "Internal server error"},
            status_code=500,
            headers=error_response_headers(request, request.app.state.settings),
        )


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[PaymentGateway] = None,
    alerts: Optional[AlertManager] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    When no settings are passed (e.g. ``uvicorn charityonme.main:create_app
    --factory``), they are read from the environment and ``.env`` and logging
    is configured from them.

    Args:
        settings: Application settings (read from the environment when omitted)
        gateway: Payment gateway (Stripe when omitted)
        alerts: Alert manager (built from settings when omitted)

    Returns:
        Configured application
    """
    if settings is None:
        load_dotenv()
        settings = Settings()
        configure_logging(settings)

    gateway = gateway or StripeGateway(settings)
    alerts = alerts or AlertManager(settings)

    app = FastAPI(
        title=f"{settings.app_name} Donation API",
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.donation_service = DonationService(settings, gateway)
    app.state.webhook_receiver = WebhookReceiver(gateway, alerts)

    install_security(app, settings)
    register_exception_handlers(app)

    app.include_router(health_check.router)
    app.include_router(payment_routes.router)
    app.include_router(pages.router)

    return app


def run() -> None:
    """Console entry point: load .env, configure logging and serve."""
    load_dotenv()
    settings = Settings()
    configure_logging(settings)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
