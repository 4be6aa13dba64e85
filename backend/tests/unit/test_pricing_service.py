# backend/tests/unit/test_pricing_service.py
"""
Unit tests for the commission calculator.

Amounts are exact decimals; subtotal, commission and service fee are each
rounded half-up once and the two totals are derived from those.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import Mock

from pydantic import ValidationError
import pytest

from rideshare.core.config import Settings
from rideshare.core.exceptions import InvalidDatesException, NotFoundException, ValidationException
from rideshare.services.pricing_service import (
    PricingService,
    calculate_rental_days,
    calculate_rental_pricing,
)
from tests.helpers import COMMISSION_RATE, PICKUP, SERVICE_FEE_RATE


class TestCalculateRentalPricing:
    def test_three_day_rental_at_twenty_per_day(self):
        pricing = calculate_rental_pricing(
            Decimal("20.00"), 3, COMMISSION_RATE, SERVICE_FEE_RATE
        )

        assert pricing.subtotal == Decimal("60.00")
        assert pricing.commission == Decimal("6.00")
        assert pricing.owner_earnings == Decimal("54.00")
        assert pricing.service_fee == Decimal("3.00")
        assert pricing.total_price == Decimal("63.00")
        assert pricing.rental_days == 3

    def test_each_amount_rounded_once_from_exact_subtotal(self):
        pricing = calculate_rental_pricing(
            Decimal("33.33"), 1, COMMISSION_RATE, SERVICE_FEE_RATE
        )

        assert pricing.subtotal == Decimal("33.33")
        assert pricing.commission == Decimal("3.33")
        assert pricing.service_fee == Decimal("1.67")
        assert pricing.owner_earnings == Decimal("30.00")
        assert pricing.total_price == Decimal("35.00")

    def test_rounds_half_up(self):
        pricing = calculate_rental_pricing(Decimal("1.25"), 1, Decimal("0.10"), Decimal("0"))

        # 0.125 rounds away from zero, not to even
        assert pricing.commission == Decimal("0.13")
        assert pricing.service_fee == Decimal("0.00")

    @pytest.mark.parametrize(
        "daily_rate,days,commission_rate,fee_rate",
        [
            ("19.99", 7, "0.10", "0.05"),
            ("45.50", 13, "0.125", "0.035"),
            ("0.01", 1, "0.15", "0.07"),
            ("249.95", 30, "0.2", "0"),
        ],
    )
    def test_identities_hold_to_the_cent(self, daily_rate, days, commission_rate, fee_rate):
        pricing = calculate_rental_pricing(daily_rate, days, commission_rate, fee_rate)

        assert pricing.total_price == pricing.subtotal + pricing.service_fee
        assert pricing.owner_earnings == pricing.subtotal - pricing.commission
        for amount in (pricing.subtotal, pricing.commission, pricing.service_fee):
            assert amount == amount.quantize(Decimal("0.01"))

    def test_float_input_is_read_through_its_string_form(self):
        pricing = calculate_rental_pricing(0.1, 3, "0.10", "0.05")

        assert pricing.subtotal == Decimal("0.30")

    @pytest.mark.parametrize("rate", ["1", "1.5", "-0.01"])
    def test_rejects_rates_outside_unit_interval(self, rate):
        with pytest.raises(ValidationException) as exc_info:
            calculate_rental_pricing(Decimal("20.00"), 3, rate, SERVICE_FEE_RATE)

        assert exc_info.value.code == "INVALID_RATE"

    def test_rejects_non_positive_daily_rate(self):
        with pytest.raises(ValidationException):
            calculate_rental_pricing(Decimal("0"), 3, COMMISSION_RATE, SERVICE_FEE_RATE)

    def test_rejects_unparseable_amount(self):
        with pytest.raises(ValidationException) as exc_info:
            calculate_rental_pricing("twenty", 3, COMMISSION_RATE, SERVICE_FEE_RATE)

        assert exc_info.value.code == "INVALID_AMOUNT"


class TestCalculateRentalDays:
    def test_whole_days(self):
        assert calculate_rental_days(PICKUP, PICKUP + timedelta(days=3)) == 3

    def test_partial_day_rounds_up(self):
        assert calculate_rental_days(PICKUP, PICKUP + timedelta(days=3, hours=1)) == 4

    def test_short_rental_bills_one_day(self):
        assert calculate_rental_days(PICKUP, PICKUP + timedelta(hours=2)) == 1

    @pytest.mark.parametrize("offset", [timedelta(0), timedelta(hours=-5)])
    def test_return_not_after_pickup_is_rejected(self, offset):
        with pytest.raises(InvalidDatesException) as exc_info:
            calculate_rental_days(PICKUP, PICKUP + offset)

        assert exc_info.value.code == "INVALID_DATES"

    def test_naive_datetimes_are_read_as_utc(self):
        naive_pickup = datetime(2026, 11, 2, 10, 0)
        aware_return = datetime(2026, 11, 3, 10, 0, tzinfo=timezone.utc)

        assert calculate_rental_days(naive_pickup, aware_return) == 1

    def test_offsets_are_normalized(self):
        plus_two = timezone(timedelta(hours=2))
        pickup = datetime(2026, 11, 2, 12, 0, tzinfo=plus_two)  # 10:00 UTC

        assert calculate_rental_days(pickup, PICKUP + timedelta(days=2)) == 2


class TestPricingService:
    @pytest.fixture
    def vehicle_repository(self):
        repository = Mock()
        repository.get_by_id.return_value = Mock(id="veh", daily_rate=Decimal("20.00"))
        return repository

    @pytest.fixture
    def service(self, vehicle_repository):
        return PricingService(
            Mock(),
            vehicle_repository=vehicle_repository,
            commission_rate=COMMISSION_RATE,
            service_fee_rate=SERVICE_FEE_RATE,
        )

    def test_quote_uses_vehicle_rate(self, service, vehicle_repository):
        pricing = service.quote("veh", PICKUP, PICKUP + timedelta(days=3))

        vehicle_repository.get_by_id.assert_called_once_with("veh")
        assert pricing.total_price == Decimal("63.00")

    def test_quote_unknown_vehicle(self, service, vehicle_repository):
        vehicle_repository.get_by_id.return_value = None

        with pytest.raises(NotFoundException) as exc_info:
            service.quote("missing", PICKUP, PICKUP + timedelta(days=1))

        assert exc_info.value.code == "VEHICLE_NOT_FOUND"


class TestRateSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.commission_rate == Decimal("0.10")
        assert settings.service_fee_rate == Decimal("0.05")

    @pytest.mark.parametrize("field", ["commission_rate", "service_fee_rate"])
    def test_out_of_range_rate_fails_at_load(self, field):
        with pytest.raises(ValidationError):
            Settings(**{field: Decimal("1.0")})
