"""
Notification inbox service.

Reads and read-receipt updates for a user's notifications, plus the write
path used by the dispatcher.
"""

from dataclasses import dataclass
import logging
from typing import Callable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException, NotificationDeliveryFailed
from ..models.notification import Notification, NotificationType
from ..repositories.factory import RepositoryFactory
from ..repositories.notification_repository import NotificationRepository
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationSpec:
    """One inbox entry to write."""

    user_id: str
    type: NotificationType
    title: str
    message: str
    related_id: Optional[str] = None
    related_type: Optional[str] = None


class NotificationService(BaseService):
    """Service for in-app notifications."""

    def __init__(
        self, db: Session, notification_repository: Optional[NotificationRepository] = None
    ):
        super().__init__(db)
        self.repository = (
            notification_repository or RepositoryFactory.create_notification_repository(db)
        )

    @BaseService.measure_operation("create_notification")
    def create_notification(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
    ) -> Notification:
        with self.transaction():
            notification = self.repository.create_notification(
                user_id=user_id,
                type=NotificationType(type).value,
                title=title,
                message=message,
                related_id=related_id,
                related_type=related_type,
            )
        return notification

    @BaseService.measure_operation("deliver_notifications")
    def deliver(
        self,
        specs: Sequence[NotificationSpec],
        still_wanted: Callable[[], bool] = lambda: True,
    ) -> bool:
        """
        Write a batch of notifications in one transaction.

        still_wanted is checked after the writes and before commit; when it
        returns False the batch is rolled back and False is returned.

        Raises:
            NotificationDeliveryFailed: The database rejected the write
        """
        try:
            for spec in specs:
                self.repository.create_notification(
                    user_id=spec.user_id,
                    type=NotificationType(spec.type).value,
                    title=spec.title,
                    message=spec.message,
                    related_id=spec.related_id,
                    related_type=spec.related_type,
                )
            if not still_wanted():
                self.db.rollback()
                return False
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            raise NotificationDeliveryFailed(
                f"Failed to write notifications: {str(e)}",
                details={"recipients": [spec.user_id for spec in specs]},
            ) from e

    @BaseService.measure_operation("get_notifications")
    def get_notifications(
        self, user_id: str, unread_only: bool = False, limit: int = 50, offset: int = 0
    ) -> List[Notification]:
        return self.repository.get_user_notifications(
            user_id=user_id, limit=limit, offset=offset, unread_only=unread_only
        )

    @BaseService.measure_operation("get_unread_count")
    def get_unread_count(self, user_id: str) -> int:
        return self.repository.get_unread_count(user_id)

    @BaseService.measure_operation("mark_as_read")
    def mark_as_read(self, user_id: str, notification_id: str) -> Notification:
        """Mark one notification read. Repeating the call is harmless."""
        with self.transaction():
            notification = self.repository.get_for_user(user_id, notification_id)
            if not notification:
                raise NotFoundException("Notification not found", code="NOTIFICATION_NOT_FOUND")
            self.repository.mark_as_read_for_user(user_id, notification_id)
        return self.repository.get_fresh(notification_id)

    @BaseService.measure_operation("mark_all_as_read")
    def mark_all_as_read(self, user_id: str) -> int:
        with self.transaction():
            count = self.repository.mark_all_as_read(user_id)
        return count

    @BaseService.measure_operation("delete_notification")
    def delete_notification(self, user_id: str, notification_id: str) -> None:
        with self.transaction():
            if not self.repository.delete_notification(user_id, notification_id):
                raise NotFoundException("Notification not found", code="NOTIFICATION_NOT_FOUND")
