# backend/tests/integration/test_commission_report_service.py
"""
Admin commission report and period stats against a real database.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from rideshare.core.exceptions import ValidationException
from rideshare.services.commission_report_service import CommissionReportService
from tests.helpers import OWNER_ID, PICKUP, RENTER_ID, RETURN, FixedClock

MID_OCTOBER = datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def ledger(booking_service, make_vehicle):
    """One completed, one confirmed and one cancelled booking, in creation order."""
    completed = booking_service.create_booking(
        RENTER_ID, make_vehicle(daily_rate=Decimal("20.00")).id, PICKUP, RETURN
    )
    confirmed = booking_service.create_booking(
        RENTER_ID, make_vehicle(name="Mazda 3", daily_rate=Decimal("50.00")).id, PICKUP, RETURN
    )
    cancelled = booking_service.create_booking(
        RENTER_ID, make_vehicle(name="Fiat 500", daily_rate=Decimal("10.00")).id, PICKUP, RETURN
    )
    booking_service.transition_status(completed.id, OWNER_ID, "confirmed")
    booking_service.transition_status(completed.id, OWNER_ID, "completed")
    booking_service.transition_status(confirmed.id, OWNER_ID, "confirmed")
    booking_service.cancel_booking(cancelled.id, RENTER_ID)
    return completed, confirmed, cancelled


@pytest.fixture
def report_service(db) -> CommissionReportService:
    return CommissionReportService(db, clock=FixedClock(MID_OCTOBER))


class TestCommissionReport:
    def test_all_bookings_newest_first_with_totals(self, report_service, ledger):
        completed, confirmed, cancelled = ledger

        report = report_service.get_commission_report()

        assert [b.id for b in report.bookings] == [cancelled.id, confirmed.id, completed.id]
        summary = report.summary
        assert summary.total_commission == Decimal("24.00")
        assert summary.total_revenue == Decimal("252.00")
        assert summary.total_bookings == 3
        assert summary.completed_bookings == 1
        assert summary.average_commission == Decimal("8.00")

    def test_rows_carry_frozen_split(self, report_service, ledger):
        completed = ledger[0]

        rows = report_service.get_commission_report().bookings
        row = next(b for b in rows if b.id == completed.id)

        assert row.subtotal == Decimal("60.00")
        assert row.commission == Decimal("6.00")
        assert row.commission_rate == Decimal("0.10")
        assert row.owner_earnings == Decimal("54.00")
        assert row.total_price == Decimal("63.00")
        assert row.payment_status == "pending"

    def test_status_filter(self, report_service, ledger):
        report = report_service.get_commission_report(status="completed")

        assert [b.id for b in report.bookings] == [ledger[0].id]
        assert report.status == "completed"
        assert report.summary.total_commission == Decimal("6.00")
        assert report.summary.total_revenue == Decimal("63.00")
        assert report.summary.average_commission == Decimal("6.00")

    def test_created_at_range_is_inclusive(self, report_service, ledger):
        completed, confirmed, _ = ledger

        report = report_service.get_commission_report(
            start_date=completed.created_at, end_date=confirmed.created_at
        )

        assert {b.id for b in report.bookings} == {ledger[0].id, ledger[1].id}
        assert report.summary.total_bookings == 2
        assert report.summary.total_commission == Decimal("21.00")

    def test_empty_report(self, report_service):
        report = report_service.get_commission_report()

        assert report.bookings == []
        assert report.summary.total_commission == Decimal("0.00")
        assert report.summary.total_bookings == 0
        assert report.summary.average_commission == Decimal("0.00")

    def test_inverted_range(self, report_service):
        with pytest.raises(ValidationException) as exc_info:
            report_service.get_commission_report(
                start_date=MID_OCTOBER, end_date=datetime(2026, 10, 1, tzinfo=timezone.utc)
            )

        assert exc_info.value.code == "INVALID_DATE_RANGE"

    def test_unknown_status(self, report_service):
        with pytest.raises(ValidationException) as exc_info:
            report_service.get_commission_report(status="teleported")

        assert exc_info.value.code == "INVALID_STATUS"


class TestCommissionStats:
    def test_month_counts_revenue_statuses_only(self, report_service, ledger):
        stats = report_service.get_commission_stats()

        assert stats.period == "month"
        assert stats.start_date == datetime(2026, 9, 15, 12, 0, tzinfo=timezone.utc)
        assert stats.end_date == MID_OCTOBER
        assert stats.summary.total_bookings == 2
        assert stats.summary.completed_bookings == 1
        assert stats.summary.total_commission == Decimal("21.00")
        assert stats.summary.total_revenue == Decimal("220.50")
        assert stats.summary.average_commission == Decimal("10.50")

    @pytest.mark.parametrize("period", ["day", "week"])
    def test_short_periods_exclude_older_bookings(self, report_service, ledger, period):
        stats = report_service.get_commission_stats(period)

        assert stats.summary.total_bookings == 0
        assert stats.summary.total_commission == Decimal("0.00")

    def test_year(self, report_service, ledger):
        stats = report_service.get_commission_stats("year")

        assert stats.start_date == datetime(2025, 10, 15, 12, 0, tzinfo=timezone.utc)
        assert stats.summary.total_bookings == 2

    def test_unknown_period(self, report_service):
        with pytest.raises(ValidationException) as exc_info:
            report_service.get_commission_stats("decade")

        assert exc_info.value.code == "INVALID_PERIOD"
