from .dispatcher import NotificationDispatcher, build_notifications

__all__ = ["NotificationDispatcher", "build_notifications"]
