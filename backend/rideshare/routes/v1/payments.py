# backend/rideshare/routes/v1/payments.py
"""
Payment collaborator webhook.

The checkout flow lives with the payment provider; this core only consumes
the "payment confirmed" signal for a booking.
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends

from ...api.dependencies import get_booking_service, verify_webhook_secret
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...schemas.booking import BookingResponse
from ...schemas.payment import PaymentWebhook
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


@router.post(
    "/webhook",
    response_model=BookingResponse,
    dependencies=[Depends(verify_webhook_secret)],
)
async def payment_webhook(
    payload: PaymentWebhook = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    logger.info(f"Payment webhook {payload.event} for booking {payload.booking_id}")
    try:
        booking = await asyncio.to_thread(
            booking_service.record_payment_confirmed, payload.booking_id
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)
