"""Constants and small helpers shared by the test suites."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

OWNER_ID = "owner-0001"
RENTER_ID = "renter-0001"
OTHER_RENTER_ID = "renter-0002"
STRANGER_ID = "stranger-0001"

COMMISSION_RATE = Decimal("0.10")
SERVICE_FEE_RATE = Decimal("0.05")

PICKUP = datetime(2026, 11, 2, 10, 0, tzinfo=timezone.utc)
RETURN = PICKUP + timedelta(days=3)


class StepClock:
    """Deterministic aware clock that advances one second per reading."""

    def __init__(self, start: datetime = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(seconds=1)
        return self.current


class FixedClock:
    """Aware clock that always returns the same instant."""

    def __init__(self, instant: datetime = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)):
        self.instant = instant

    def __call__(self) -> datetime:
        return self.instant
