"""
Monitoring and observability module for the donation backend.
"""

from charityonme.monitoring.logger import get_logger, setup_logging
from charityonme.monitoring.alerts import AlertLevel, AlertManager

__all__ = [
    "get_logger",
    "setup_logging",
    "AlertLevel",
    "AlertManager",
]
