"""
Health check endpoints for liveness and readiness probes.
"""

from datetime import datetime, timezone
from typing import Dict, Any
from fastapi import APIRouter, Request

from charityonme.monitoring.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
async def health_check(request: Request) -> Dict[str, str]:
    """
    Liveness check endpoint.

    Never calls Stripe, so it reports OK regardless of provider availability.
    """
    return {
        "status": "OK",
        "timestamp": _now(),
        "version": request.app.state.settings.app_version,
    }


@router.get("/ready")
async def readiness_check(request: Request) -> Dict[str, Any]:
    """
    Readiness check endpoint.

    Returns:
        Readiness status and any missing Stripe configuration
    """
    missing_vars = request.app.state.settings.missing_stripe_settings()

    if missing_vars:
        logger.warning("Readiness check failed", extra={"missing": missing_vars})
        return {
            "ready": False,
            "message": f"Missing required environment variables: {', '.join(missing_vars)}",
            "timestamp": _now(),
        }

    return {
        "ready": True,
        "message": "Service is ready to accept requests",
        "timestamp": _now(),
    }
