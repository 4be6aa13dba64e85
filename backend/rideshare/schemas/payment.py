"""Schemas for the payment collaborator's webhook."""

from typing import Literal

from pydantic import Field

from ._strict_base import StrictRequestModel


class PaymentWebhook(StrictRequestModel):
    """Payment-confirmed signal for one booking."""

    event: Literal["payment.confirmed"] = "payment.confirmed"
    booking_id: str = Field(..., min_length=1)
