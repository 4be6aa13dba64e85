# backend/rideshare/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import FastAPI

from .core.config import is_running_tests, settings
from .database import Base, SessionLocal, engine
from .errors import register_error_handlers
from .events.publisher import EventPublisher
from .notifications.dispatcher import NotificationDispatcher
from .routes.v1 import bookings as bookings_v1
from .routes.v1 import chat as chat_v1
from .routes.v1 import health as health_v1
from .routes.v1 import notifications as notifications_v1
from .routes.v1 import payments as payments_v1
from .routes.v1 import pricing as pricing_v1
from .routes.v1.admin import commissions as admin_commissions_v1

API_TITLE = "RideShare API"
API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Wire the event publisher and notification dispatcher for the app's lifetime."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    if settings.is_sqlite and settings.environment != "production":
        # Local SQLite has no migration step
        Base.metadata.create_all(bind=engine)

    publisher = EventPublisher()
    dispatcher = NotificationDispatcher(SessionLocal)
    dispatcher.register(publisher)
    app.state.event_publisher = publisher
    app.state.notification_dispatcher = dispatcher
    logger.info(
        f"Notification dispatcher ready (timeout={dispatcher.timeout_seconds}s, "
        f"rates commission={settings.commission_rate} fee={settings.service_fee_rate})"
    )

    yield

    logger.info(f"{API_TITLE} shutting down...")
    dispatcher.shutdown(wait_for_pending=True)


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

# Register unified error envelope handlers
register_error_handlers(app)

app.include_router(bookings_v1.router, prefix="/bookings")
app.include_router(pricing_v1.router, prefix="/pricing")
app.include_router(payments_v1.router, prefix="/payments")
app.include_router(chat_v1.router, prefix="/chat")
app.include_router(notifications_v1.router, prefix="/notifications")
app.include_router(admin_commissions_v1.router, prefix="/admin/commissions")
app.include_router(health_v1.router)
