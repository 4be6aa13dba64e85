# backend/rideshare/routes/v1/notifications.py
"""Notification inbox routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.params import Path

from ...api.dependencies import get_current_user_id, get_notification_service
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...schemas.notifications import (
    NotificationListResponse,
    NotificationResponse,
    NotificationStatusResponse,
    NotificationUnreadCountResponse,
)
from ...services.notification_service import NotificationService

router = APIRouter(tags=["notifications"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    unread_only: bool = Query(False),
    unread_only_camel: Optional[bool] = Query(None, alias="unreadOnly"),
    current_user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    """
    List notifications for the current user, newest first.

    The unread filter is accepted as unreadOnly or unread_only; unreadOnly
    wins when both are sent.
    """
    if unread_only_camel is not None:
        unread_only = unread_only_camel
    notifications = service.get_notifications(
        user_id=current_user_id,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )
    unread_count = service.get_unread_count(current_user_id)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        unread_count=unread_count,
    )


@router.get("/unread-count", response_model=NotificationUnreadCountResponse)
def get_unread_count(
    current_user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationUnreadCountResponse:
    return NotificationUnreadCountResponse(unread_count=service.get_unread_count(current_user_id))


@router.put("/read-all", response_model=NotificationStatusResponse)
def mark_all_read(
    current_user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationStatusResponse:
    count = service.mark_all_as_read(current_user_id)
    return NotificationStatusResponse(
        success=True, message=f"Marked {count} notifications as read", count=count
    )


@router.put("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_read(
    notification_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    current_user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationResponse:
    try:
        notification = service.mark_as_read(current_user_id, notification_id)
    except DomainException as e:
        handle_domain_exception(e)
    return NotificationResponse.model_validate(notification)


@router.delete("/{notification_id}", response_model=NotificationStatusResponse)
def delete_notification(
    notification_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    current_user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationStatusResponse:
    try:
        service.delete_notification(current_user_id, notification_id)
    except DomainException as e:
        handle_domain_exception(e)
    return NotificationStatusResponse(success=True, message="Notification deleted")
