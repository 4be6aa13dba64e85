# backend/rideshare/services/commission_report_service.py
"""
Commission reporting for platform admins.

Totals are aggregated by the database; the per-booking rows come straight
from each booking's frozen pricing snapshot, so a report never recomputes a
price.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Any, Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.exceptions import ValidationException
from ..models.booking import Booking, BookingStatus
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .pricing_service import CENT, as_utc

logger = logging.getLogger(__name__)

PERIODS = ("day", "week", "month", "year")

# Bookings that earned (or will earn) commission
REVENUE_STATUSES = (
    BookingStatus.CONFIRMED.value,
    BookingStatus.ACTIVE.value,
    BookingStatus.COMPLETED.value,
)


@dataclass(frozen=True)
class CommissionSummary:
    total_commission: Decimal
    total_revenue: Decimal
    total_bookings: int
    completed_bookings: int
    average_commission: Decimal


@dataclass(frozen=True)
class CommissionReport:
    bookings: List[Booking]
    summary: CommissionSummary
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class CommissionStats:
    period: str
    start_date: datetime
    end_date: datetime
    summary: CommissionSummary


def _money(value: Any) -> Decimal:
    if value is None:
        value = 0
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _days_in_month(year: int, month: int) -> int:
    next_month = datetime(year, month, 28, tzinfo=timezone.utc) + timedelta(days=4)
    return (next_month - timedelta(days=next_month.day)).day


def _shift_month(value: datetime, months: int) -> datetime:
    year = value.year + (value.month - 1 + months) // 12
    month = (value.month - 1 + months) % 12 + 1
    day = min(value.day, _days_in_month(year, month))
    return value.replace(year=year, month=month, day=day)


def resolve_period(period: str, now: datetime) -> Tuple[datetime, datetime]:
    """
    Window ending at now for a stats period.

    day starts at today's UTC midnight; week is the last 7 days; month and
    year step back one calendar month or year, clamping the day of month.
    """
    if period == "day":
        return now.replace(hour=0, minute=0, second=0, microsecond=0), now
    if period == "week":
        return now - timedelta(days=7), now
    if period == "month":
        return _shift_month(now, -1), now
    if period == "year":
        return _shift_month(now, -12), now
    raise ValidationException(
        f"Unknown period: {period}",
        code="INVALID_PERIOD",
        details={"allowed": list(PERIODS)},
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CommissionReportService(BaseService):
    """Read-only commission and revenue figures across all bookings."""

    def __init__(
        self,
        db: Session,
        booking_repository: Optional[BookingRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db)
        self.repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self._clock = clock or _utcnow

    @BaseService.measure_operation("get_commission_report")
    def get_commission_report(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        status: Optional[str] = None,
    ) -> CommissionReport:
        """
        Bookings created within [start_date, end_date] with their commission.

        Either bound may be omitted. status narrows the report to one booking
        status.

        Raises:
            ValidationException: start_date after end_date, or unknown status
        """
        start = as_utc(start_date) if start_date else None
        end = as_utc(end_date) if end_date else None
        if start and end and start > end:
            raise ValidationException(
                "startDate must not be after endDate", code="INVALID_DATE_RANGE"
            )
        statuses: Optional[Tuple[str, ...]] = None
        if status:
            try:
                statuses = (BookingStatus(status).value,)
            except ValueError:
                raise ValidationException(
                    f"Unknown booking status: {status}", code="INVALID_STATUS"
                )

        self.log_operation("get_commission_report", start=start, end=end, status=status)
        bookings = self.repository.list_for_commission_report(start, end, statuses)
        summary = self._summarize(self.repository.commission_totals(start, end, statuses))
        return CommissionReport(
            bookings=bookings,
            summary=summary,
            start_date=start,
            end_date=end,
            status=statuses[0] if statuses else None,
        )

    @BaseService.measure_operation("get_commission_stats")
    def get_commission_stats(self, period: str = "month") -> CommissionStats:
        """Commission totals over confirmed, active and completed bookings in a period."""
        start, end = resolve_period(period, self._clock())
        totals = self.repository.commission_totals(start, end, REVENUE_STATUSES)
        summary = self._summarize(totals)
        self.logger.info(
            f"Commission stats for {period}: {summary.total_bookings} bookings",
            extra={"period": period, "total_commission": str(summary.total_commission)},
        )
        return CommissionStats(period=period, start_date=start, end_date=end, summary=summary)

    @staticmethod
    def _summarize(totals: Tuple[Any, Any, int, int]) -> CommissionSummary:
        total_commission, total_revenue, total_bookings, completed_bookings = totals
        commission = _money(total_commission)
        average = _money(commission / total_bookings) if total_bookings else _money(0)
        return CommissionSummary(
            total_commission=commission,
            total_revenue=_money(total_revenue),
            total_bookings=total_bookings,
            completed_bookings=completed_bookings,
            average_commission=average,
        )
