# backend/rideshare/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import get_current_user_id, require_admin, verify_webhook_secret
from .database import get_db
from .services import (
    get_booking_service,
    get_chat_service,
    get_commission_report_service,
    get_event_publisher,
    get_notification_service,
    get_pricing_service,
)

__all__ = [
    # Auth
    "get_current_user_id",
    "require_admin",
    "verify_webhook_secret",
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_chat_service",
    "get_commission_report_service",
    "get_event_publisher",
    "get_notification_service",
    "get_pricing_service",
]
