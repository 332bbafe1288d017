from .dispatcher import FOLLOW_EVENT, DatabaseNotificationDispatcher, NotificationDispatcher

__all__ = ["FOLLOW_EVENT", "DatabaseNotificationDispatcher", "NotificationDispatcher"]
