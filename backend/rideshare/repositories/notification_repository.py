"""Repository for in-app notification inbox entries."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, cast

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.notification import Notification
from .base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Data access for notification inbox entries."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, Notification)

    def create_notification(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        related_id: str | None = None,
        related_type: str | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            related_id=related_id,
            related_type=related_type,
        )
        self.db.add(notification)
        self.db.flush()
        self.db.refresh(notification)
        return notification

    def get_user_notifications(
        self,
        user_id: str,
        limit: int = 50,
        offset: int = 0,
        unread_only: bool = False,
    ) -> List[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        query = (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return cast(List[Notification], query.all())

    def get_unread_count(self, user_id: str) -> int:
        count = (
            self.db.query(func.count(Notification.id))
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .scalar()
        )
        return int(count or 0)

    def get_for_user(self, user_id: str, notification_id: str) -> Optional[Notification]:
        return cast(
            Optional[Notification],
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first(),
        )

    def mark_as_read_for_user(self, user_id: str, notification_id: str) -> bool:
        now = datetime.now(timezone.utc)
        updated = (
            self.db.query(Notification)
            .filter(
                Notification.id == notification_id,
                Notification.user_id == user_id,
                Notification.read.is_(False),
            )
            .update({"read": True, "read_at": now}, synchronize_session="fetch")
        )
        return bool(updated)

    def mark_all_as_read(self, user_id: str) -> int:
        now = datetime.now(timezone.utc)
        updated = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .update({"read": True, "read_at": now}, synchronize_session="fetch")
        )
        return int(updated or 0)

    def delete_notification(self, user_id: str, notification_id: str) -> bool:
        deleted = (
            self.db.query(Notification)
            .filter(
                Notification.user_id == user_id,
                Notification.id == notification_id,
            )
            .delete(synchronize_session=False)
        )
        return bool(deleted)
