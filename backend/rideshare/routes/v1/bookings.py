# backend/rideshare/routes/v1/bookings.py
"""
Booking routes

All business logic delegated to BookingService.

Endpoints:
    POST / - Create a pending booking and hold the vehicle
    GET /my-bookings - Bookings the caller made as renter
    GET /owner-requests - Bookings on the caller's vehicles
    GET /{booking_id} - Booking details for either participant
    PUT /{booking_id}/status - Owner or renter status change
    DELETE /{booking_id} - Renter cancellation
    POST /{booking_id}/review - Renter review of a completed booking
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.params import Path

from ...api.dependencies import get_booking_service, get_current_user_id
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...models.booking import BookingStatus
from ...schemas.booking import (
    BookingCreate,
    BookingResponse,
    BookingReviewCreate,
    BookingStatusUpdate,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Create a booking for the caller as renter.

    The vehicle is claimed atomically; a concurrent request that loses the
    race gets VEHICLE_UNAVAILABLE.
    """
    try:
        booking = await asyncio.to_thread(
            booking_service.create_booking,
            renter_id=current_user_id,
            vehicle_id=booking_data.vehicle_id,
            pickup_date=booking_data.pickup_date,
            return_date=booking_data.return_date,
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/my-bookings", response_model=List[BookingResponse])
async def get_my_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    current_user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    """Bookings the caller made, newest first."""
    try:
        bookings = await asyncio.to_thread(
            booking_service.list_bookings_for_renter, current_user_id, status_filter
        )
        return [BookingResponse.model_validate(b) for b in bookings]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/owner-requests", response_model=List[BookingResponse])
async def get_owner_requests(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    current_user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    """Bookings on vehicles the caller owns, newest first."""
    try:
        bookings = await asyncio.to_thread(
            booking_service.list_bookings_for_owner, current_user_id, status_filter
        )
        return [BookingResponse.model_validate(b) for b in bookings]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str = Path(
        ...,
        description="Booking ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    current_user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.get_booking_for_user, booking_id, current_user_id
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    update: BookingStatusUpdate = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Request a status change.

    The owner may confirm, activate, complete or reject (cancel); the renter
    may cancel. Terminal bookings reject every change.
    """
    try:
        booking = await asyncio.to_thread(
            booking_service.transition_status, booking_id, current_user_id, update.status
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{booking_id}", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    current_user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Renter cancellation. A paid booking is refunded and the vehicle released."""
    try:
        booking = await asyncio.to_thread(
            booking_service.cancel_booking, booking_id, current_user_id
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/review", response_model=BookingResponse)
async def review_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    review: BookingReviewCreate = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Rate a completed rental. Only the renter may review, and only once."""
    try:
        booking = await asyncio.to_thread(
            booking_service.submit_review,
            booking_id,
            current_user_id,
            review.rating,
            review.comment,
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)
