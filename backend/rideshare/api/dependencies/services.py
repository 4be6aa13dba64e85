# backend/rideshare/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each factory builds a request-scoped service around the request's session.
Services that emit domain events share the application's EventPublisher,
created at start-up and stored on app.state.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ...events.publisher import EventPublisher
from ...services.booking_service import BookingService
from ...services.chat_service import ChatService
from ...services.commission_report_service import CommissionReportService
from ...services.notification_service import NotificationService
from ...services.pricing_service import PricingService
from .database import get_db

logger = logging.getLogger(__name__)


def get_event_publisher(request: Request) -> Optional[EventPublisher]:
    """Application-wide publisher, or None when the app started without one."""
    publisher = getattr(request.app.state, "event_publisher", None)
    if publisher is None:
        logger.debug("No event publisher configured; domain events will not be delivered")
    return publisher


def get_booking_service(
    db: Session = Depends(get_db),
    event_publisher: Optional[EventPublisher] = Depends(get_event_publisher),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        event_publisher: Receives booking events after commit

    Returns:
        BookingService instance
    """
    return BookingService(db, event_publisher=event_publisher)


def get_chat_service(
    db: Session = Depends(get_db),
    event_publisher: Optional[EventPublisher] = Depends(get_event_publisher),
) -> ChatService:
    return ChatService(db, event_publisher=event_publisher)


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_pricing_service(db: Session = Depends(get_db)) -> PricingService:
    return PricingService(db)


def get_commission_report_service(db: Session = Depends(get_db)) -> CommissionReportService:
    return CommissionReportService(db)
