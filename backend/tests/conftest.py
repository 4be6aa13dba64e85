# backend/tests/conftest.py
"""
Shared fixtures.

Every test that touches the database gets its own file-backed SQLite
database under tmp_path, so threads in the concurrency tests share one
store exactly as request workers would.
"""

from decimal import Decimal
import os
from typing import Callable, Dict, Iterator

os.environ.setdefault("ENVIRONMENT", "test")

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from rideshare.api.dependencies.database import get_db  # noqa: E402
from rideshare.api.dependencies.services import get_event_publisher  # noqa: E402
from rideshare.auth import create_access_token  # noqa: E402
from rideshare.database import Base, build_engine_kwargs  # noqa: E402
from rideshare.events.publisher import EventPublisher  # noqa: E402
from rideshare.main import app  # noqa: E402
from rideshare.models.vehicle import Vehicle  # noqa: E402
from rideshare.notifications.dispatcher import NotificationDispatcher  # noqa: E402
from rideshare.services.booking_service import BookingService  # noqa: E402
from rideshare.services.chat_service import ChatService  # noqa: E402
from rideshare.services.notification_service import NotificationService  # noqa: E402
from tests.helpers import (  # noqa: E402
    COMMISSION_RATE,
    OWNER_ID,
    PICKUP,
    RENTER_ID,
    RETURN,
    SERVICE_FEE_RATE,
    StepClock,
)


@pytest.fixture
def engine(tmp_path):
    db_url = f"sqlite:///{tmp_path / 'rideshare_test.db'}"
    test_engine = create_engine(db_url, **build_engine_kwargs(db_url))
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def publisher() -> EventPublisher:
    return EventPublisher()


@pytest.fixture
def dispatcher(session_factory, publisher) -> Iterator[NotificationDispatcher]:
    """Inline dispatcher so notifications exist as soon as the service call returns."""
    notification_dispatcher = NotificationDispatcher(
        session_factory, timeout_seconds=30.0, run_inline=True
    )
    notification_dispatcher.register(publisher)
    yield notification_dispatcher
    notification_dispatcher.shutdown()


@pytest.fixture
def make_vehicle(db) -> Callable[..., Vehicle]:
    def _make(
        owner_id: str = OWNER_ID,
        name: str = "Toyota Corolla",
        daily_rate: Decimal = Decimal("20.00"),
        available: bool = True,
    ) -> Vehicle:
        vehicle = Vehicle(
            owner_id=owner_id,
            name=name,
            daily_rate=daily_rate,
            available=available,
            total_rentals=0,
        )
        db.add(vehicle)
        db.commit()
        return vehicle

    return _make


@pytest.fixture
def vehicle(make_vehicle) -> Vehicle:
    return make_vehicle()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def booking_service(db, publisher, dispatcher, clock) -> BookingService:
    return BookingService(
        db,
        event_publisher=publisher,
        commission_rate=COMMISSION_RATE,
        service_fee_rate=SERVICE_FEE_RATE,
        auto_confirm_on_payment=True,
        clock=clock,
    )


@pytest.fixture
def chat_service(db, publisher, dispatcher, clock) -> ChatService:
    return ChatService(db, event_publisher=publisher, clock=clock)


@pytest.fixture
def notification_service(db) -> NotificationService:
    return NotificationService(db)


@pytest.fixture
def pending_booking(booking_service, vehicle):
    return booking_service.create_booking(RENTER_ID, vehicle.id, PICKUP, RETURN)


@pytest.fixture
def client(session_factory, publisher, dispatcher) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_publisher] = lambda: publisher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[str], Dict[str, str]]:
    def _headers(user_id: str) -> Dict[str, str]:
        token = create_access_token({"sub": user_id})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    token = create_access_token({"sub": "admin-0001", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}
