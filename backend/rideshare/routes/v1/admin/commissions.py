# backend/rideshare/routes/v1/admin/commissions.py
"""
Admin commission routes

Endpoints:
    GET / - Per-booking commission report with totals
    GET /stats - Commission totals for a trailing period
"""

import asyncio
from datetime import datetime
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from ....api.dependencies import get_commission_report_service, require_admin
from ....core.exceptions import DomainException
from ....errors import handle_domain_exception
from ....models.booking import BookingStatus
from ....schemas.commission import (
    CommissionBookingResponse,
    CommissionReportResponse,
    CommissionStatsResponse,
    CommissionTotalsResponse,
)
from ....services.commission_report_service import CommissionReportService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-commissions"])


@router.get("", response_model=CommissionReportResponse)
async def get_commission_report(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    admin_id: str = Depends(require_admin),
    service: CommissionReportService = Depends(get_commission_report_service),
) -> CommissionReportResponse:
    """Bookings created in [startDate, endDate] with their commission split."""
    logger.info(f"Commission report requested by admin {admin_id}")
    try:
        report = await asyncio.to_thread(
            service.get_commission_report,
            start_date=start_date,
            end_date=end_date,
            status=status_filter.value if status_filter else None,
        )
    except DomainException as e:
        handle_domain_exception(e)
    summary = report.summary
    return CommissionReportResponse(
        bookings=[CommissionBookingResponse.model_validate(b) for b in report.bookings],
        totals=CommissionTotalsResponse(
            total_commission=summary.total_commission,
            total_revenue=summary.total_revenue,
            total_bookings=summary.total_bookings,
            completed_bookings=summary.completed_bookings,
            average_commission=summary.average_commission,
        ),
        start_date=report.start_date,
        end_date=report.end_date,
        status=report.status,
    )


@router.get("/stats", response_model=CommissionStatsResponse)
async def get_commission_stats(
    period: Literal["day", "week", "month", "year"] = Query("month"),
    admin_id: str = Depends(require_admin),
    service: CommissionReportService = Depends(get_commission_report_service),
) -> CommissionStatsResponse:
    try:
        stats = await asyncio.to_thread(service.get_commission_stats, period)
    except DomainException as e:
        handle_domain_exception(e)
    summary = stats.summary
    return CommissionStatsResponse(
        period=stats.period,
        start_date=stats.start_date,
        end_date=stats.end_date,
        total_commission=summary.total_commission,
        total_revenue=summary.total_revenue,
        total_bookings=summary.total_bookings,
        completed_bookings=summary.completed_bookings,
        average_commission=summary.average_commission,
    )
