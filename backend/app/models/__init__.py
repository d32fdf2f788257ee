from app.models.favorite import Favorite
from app.models.follow import Follow
from app.models.global_notification_settings import GlobalNotificationSettings
from app.models.notification import Notification
from app.models.notification_preferences import NotificationPreferences
from app.models.notification_worker_state import NotificationWorkerState
from app.models.user_cache import UserCache
from app.models.user_notification_preferences import UserNotificationPreferences

__all__ = [
    "Favorite",
    "Follow",
    "GlobalNotificationSettings",
    "Notification",
    "NotificationPreferences",
    "NotificationWorkerState",
    "UserCache",
    "UserNotificationPreferences",
]
