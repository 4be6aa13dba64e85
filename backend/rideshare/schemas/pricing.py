"""Schemas for price previews."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from ._strict_base import StrictModel, StrictRequestModel


class PricingQuoteRequest(StrictRequestModel):
    vehicle_id: str = Field(..., min_length=1)
    pickup_date: datetime
    return_date: datetime


class PricingQuoteResponse(StrictModel):
    """Breakdown a booking created now would freeze."""

    daily_rate: Decimal
    rental_days: int
    commission_rate: Decimal
    service_fee_rate: Decimal
    subtotal: Decimal
    service_fee: Decimal
    commission: Decimal
    owner_earnings: Decimal
    total_price: Decimal
