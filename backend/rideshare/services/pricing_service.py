"""Centralized pricing calculations for rentals."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import math
from typing import Any, Dict, Optional, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import InvalidDatesException, NotFoundException, ValidationException
from ..repositories.factory import RepositoryFactory
from ..repositories.vehicle_repository import VehicleRepository
from .base import BaseService

CENT = Decimal("0.01")
SECONDS_PER_DAY = 86400

Money = Union[Decimal, int, str]


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_decimal(value: Money, field: str) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationException(f"Invalid {field}: {value!r}", code="INVALID_AMOUNT")


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def validate_rate(rate: Decimal, field: str) -> Decimal:
    if rate < 0 or rate >= 1:
        raise ValidationException(f"{field} must be within [0, 1)", code="INVALID_RATE")
    return rate


def calculate_rental_days(pickup_date: datetime, return_date: datetime) -> int:
    """
    Whole days billed for a rental: ceil(elapsed / 1 day), at least 1.

    Naive datetimes are read as UTC. A return at or before pickup is rejected.
    """
    pickup = as_utc(pickup_date)
    returned = as_utc(return_date)
    if returned <= pickup:
        raise InvalidDatesException()
    elapsed = (returned - pickup).total_seconds()
    return max(1, math.ceil(elapsed / SECONDS_PER_DAY))


@dataclass(frozen=True)
class RentalPricing:
    """Frozen price breakdown for one booking."""

    daily_rate: Decimal
    rental_days: int
    commission_rate: Decimal
    service_fee_rate: Decimal
    subtotal: Decimal
    service_fee: Decimal
    commission: Decimal
    owner_earnings: Decimal
    total_price: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_rental_pricing(
    daily_rate: Money,
    rental_days: int,
    commission_rate: Money,
    service_fee_rate: Money,
) -> RentalPricing:
    """
    Compute the price split for a rental.

    subtotal, commission and service_fee are each rounded half-up once, from
    unrounded inputs. owner_earnings and total_price are sums of those rounded
    amounts, so both identities hold to the cent.
    """
    rate = _to_decimal(daily_rate, "daily_rate")
    commission_pct = validate_rate(
        _to_decimal(commission_rate, "commission_rate"), "commission_rate"
    )
    fee_pct = validate_rate(_to_decimal(service_fee_rate, "service_fee_rate"), "service_fee_rate")

    if rate <= 0:
        raise ValidationException("Daily rate must be positive", code="INVALID_AMOUNT")
    if rental_days < 1:
        raise ValidationException("Rental must be at least one day", code="INVALID_RENTAL_DAYS")

    exact_subtotal = rate * rental_days
    subtotal = _quantize(exact_subtotal)
    commission = _quantize(exact_subtotal * commission_pct)
    service_fee = _quantize(exact_subtotal * fee_pct)

    return RentalPricing(
        daily_rate=_quantize(rate),
        rental_days=rental_days,
        commission_rate=commission_pct,
        service_fee_rate=fee_pct,
        subtotal=subtotal,
        service_fee=service_fee,
        commission=commission,
        owner_earnings=subtotal - commission,
        total_price=subtotal + service_fee,
    )


class PricingService(BaseService):
    """Read-only price quotes using the configured platform rates."""

    def __init__(
        self,
        db: Session,
        vehicle_repository: Optional[VehicleRepository] = None,
        commission_rate: Optional[Decimal] = None,
        service_fee_rate: Optional[Decimal] = None,
    ) -> None:
        super().__init__(db)
        self.vehicle_repository = vehicle_repository or RepositoryFactory.create_vehicle_repository(
            db
        )
        self.commission_rate = (
            commission_rate if commission_rate is not None else settings.commission_rate
        )
        self.service_fee_rate = (
            service_fee_rate if service_fee_rate is not None else settings.service_fee_rate
        )

    def price(
        self, daily_rate: Money, pickup_date: datetime, return_date: datetime
    ) -> RentalPricing:
        days = calculate_rental_days(pickup_date, return_date)
        return calculate_rental_pricing(
            daily_rate, days, self.commission_rate, self.service_fee_rate
        )

    @BaseService.measure_operation("quote")
    def quote(
        self, vehicle_id: str, pickup_date: datetime, return_date: datetime
    ) -> RentalPricing:
        """Price preview for a vehicle and date range. Writes nothing."""
        vehicle = self.vehicle_repository.get_by_id(vehicle_id)
        if not vehicle:
            raise NotFoundException("Vehicle not found", code="VEHICLE_NOT_FOUND")
        return self.price(vehicle.daily_rate, pickup_date, return_date)
