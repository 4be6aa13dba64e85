from .booking import BookingCreate, BookingResponse, BookingReviewCreate, BookingStatusUpdate
from .commission import (
    CommissionBookingResponse,
    CommissionReportResponse,
    CommissionStatsResponse,
    CommissionTotalsResponse,
)
from .chat import (
    ChannelDetailResponse,
    ChannelResponse,
    ChannelSummaryResponse,
    CountResponse,
    MessageResponse,
    SendMessageRequest,
)
from .notifications import (
    NotificationListResponse,
    NotificationResponse,
    NotificationStatusResponse,
    NotificationUnreadCountResponse,
)
from .payment import PaymentWebhook
from .pricing import PricingQuoteRequest, PricingQuoteResponse

__all__ = [
    "BookingCreate",
    "BookingResponse",
    "BookingReviewCreate",
    "BookingStatusUpdate",
    "ChannelDetailResponse",
    "ChannelResponse",
    "ChannelSummaryResponse",
    "CountResponse",
    "MessageResponse",
    "CommissionBookingResponse",
    "CommissionReportResponse",
    "CommissionStatsResponse",
    "CommissionTotalsResponse",
    "SendMessageRequest",
    "NotificationListResponse",
    "NotificationResponse",
    "NotificationStatusResponse",
    "NotificationUnreadCountResponse",
    "PaymentWebhook",
    "PricingQuoteRequest",
    "PricingQuoteResponse",
]
