# backend/rideshare/routes/v1/pricing.py
"""Price preview routes."""

import asyncio

from fastapi import APIRouter, Body, Depends

from ...api.dependencies import get_current_user_id, get_pricing_service
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...schemas.pricing import PricingQuoteRequest, PricingQuoteResponse
from ...services.pricing_service import PricingService

router = APIRouter(tags=["pricing"])


@router.post("/quote", response_model=PricingQuoteResponse)
async def quote_price(
    payload: PricingQuoteRequest = Body(...),
    current_user_id: str = Depends(get_current_user_id),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> PricingQuoteResponse:
    """Breakdown a booking for these dates would freeze, without creating it."""
    try:
        pricing = await asyncio.to_thread(
            pricing_service.quote, payload.vehicle_id, payload.pickup_date, payload.return_date
        )
        return PricingQuoteResponse.model_validate(pricing)
    except DomainException as e:
        handle_domain_exception(e)
