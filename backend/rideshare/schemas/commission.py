"""Admin commission report responses.

Field names follow the admin dashboard's camelCase keys.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import ConfigDict, Field

from ._strict_base import StrictModel


class _AdminResponse(StrictModel):
    model_config = ConfigDict(populate_by_name=True)


class CommissionBookingResponse(_AdminResponse):
    """One booking's frozen commission figures."""

    id: str
    renter_id: str = Field(..., alias="renterId")
    owner_id: str = Field(..., alias="ownerId")
    vehicle_id: str = Field(..., alias="vehicleId")
    vehicle_name: str = Field(..., alias="vehicleName")
    subtotal: Decimal
    commission: Decimal
    commission_rate: Decimal = Field(..., alias="commissionRate")
    owner_earnings: Decimal = Field(..., alias="ownerEarnings")
    total_price: Decimal = Field(..., alias="totalPrice")
    status: str
    payment_status: str = Field(..., alias="paymentStatus")
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class CommissionTotalsResponse(_AdminResponse):
    total_commission: Decimal = Field(..., alias="totalCommission")
    total_revenue: Decimal = Field(..., alias="totalRevenue")
    total_bookings: int = Field(..., alias="totalBookings")
    completed_bookings: int = Field(..., alias="completedBookings")
    average_commission: Decimal = Field(..., alias="averageCommission")


class CommissionReportResponse(_AdminResponse):
    bookings: List[CommissionBookingResponse]
    totals: CommissionTotalsResponse
    start_date: Optional[datetime] = Field(None, alias="startDate")
    end_date: Optional[datetime] = Field(None, alias="endDate")
    status: Optional[str] = None


class CommissionStatsResponse(_AdminResponse):
    """Commission totals for a trailing period."""

    period: str
    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime = Field(..., alias="endDate")
    total_commission: Decimal = Field(..., alias="totalCommission")
    total_revenue: Decimal = Field(..., alias="totalRevenue")
    total_bookings: int = Field(..., alias="totalBookings")
    completed_bookings: int = Field(..., alias="completedBookings")
    average_commission: Decimal = Field(..., alias="averageCommission")
