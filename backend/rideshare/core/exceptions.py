# backend/rideshare/core/exceptions.py
"""
Domain-specific exceptions for the RideShare booking core.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

BOOKING_LOCKED_MESSAGE = "This booking can no longer be modified"
VEHICLE_TAKEN_MESSAGE = "This vehicle was just booked by someone else"


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        code: Optional[str] = "FORBIDDEN",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Booking lifecycle exceptions


class InvalidTransitionException(ValidationException):
    """Raised when a requested status change is not in the transition table."""

    def __init__(
        self,
        current_status: str,
        target_status: str,
        message: Optional[str] = None,
        code: str = "INVALID_TRANSITION",
    ) -> None:
        super().__init__(
            message=message or BOOKING_LOCKED_MESSAGE,
            code=code,
            details={"current_status": current_status, "target_status": target_status},
        )


class AlreadyTerminalException(InvalidTransitionException):
    """Raised when trying to move a completed or cancelled booking."""

    def __init__(self, current_status: str, target_status: str) -> None:
        super().__init__(current_status, target_status, code="ALREADY_TERMINAL")


class AlreadyCompletedException(InvalidTransitionException):
    """Raised when a renter tries to cancel a booking that already finished."""

    def __init__(self) -> None:
        super().__init__(
            "completed",
            "cancelled",
            message="This booking has already been completed and can no longer be cancelled",
            code="ALREADY_COMPLETED",
        )


class AlreadyActiveException(InvalidTransitionException):
    """Raised when a renter tries to cancel a rental that is underway."""

    def __init__(self) -> None:
        super().__init__(
            "active",
            "cancelled",
            message="This rental is already active and can no longer be cancelled",
            code="ALREADY_ACTIVE",
        )


class VehicleUnavailableException(ValidationException):
    """Raised when the vehicle is not bookable or the availability race was lost."""

    def __init__(self, vehicle_id: str) -> None:
        super().__init__(
            message=VEHICLE_TAKEN_MESSAGE,
            code="VEHICLE_UNAVAILABLE",
            details={"vehicle_id": vehicle_id},
        )


class InvalidDatesException(ValidationException):
    """Raised when the return date does not come after the pickup date."""

    def __init__(self, message: str = "Return date must be after pickup date") -> None:
        super().__init__(message=message, code="INVALID_DATES")


# Chat exceptions


class EmptyMessageException(ValidationException):
    """Raised when a chat message has no content."""

    def __init__(self) -> None:
        super().__init__(message="Message is required", code="EMPTY_MESSAGE")


# Notification exceptions


class NotificationDeliveryFailed(DomainException):
    """
    Internal-only failure of a notification write.

    Logged by the dispatcher and never propagated to the caller of the
    operation that triggered the notification.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="NOTIFICATION_DELIVERY_FAILED", details=details)


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
