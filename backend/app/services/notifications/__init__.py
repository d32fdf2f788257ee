"""Notification pipeline: derive notifications from marketplace events, store them, and hand them to push."""
from app.services.notifications.handlers import EventNotifier
from app.services.notifications.store import NotificationStore
from app.services.notifications.types import NotificationType
from app.services.notifications.worker import NotificationWorker, run_notification_worker

__all__ = [
    "EventNotifier",
    "NotificationStore",
    "NotificationType",
    "NotificationWorker",
    "run_notification_worker",
]
