"""
Preference filter and preference storage.

should_send resolution order: not toggleable -> send; global setting False -> drop;
user's granular setting False -> drop; otherwise send (missing rows mean "on").
Coarse channels (push / in-app / email) are applied later by the store.
"""
from typing import Any

from sqlalchemy.orm import Session

from app.models.global_notification_settings import GlobalNotificationSettings
from app.models.notification_preferences import NotificationPreferences
from app.models.user_notification_preferences import UserNotificationPreferences
from app.services.notifications.types import PREFERENCE_KEYS, NotificationType, preference_key_for

COARSE_KEYS = ("fid", "push_enabled", "in_app_enabled", "email_enabled")


def _normalize(address: str) -> str:
    return (address or "").strip().lower()


def _unknown_keys(updates: dict[str, Any], allowed: tuple[str, ...]) -> list[str]:
    return sorted(k for k in updates if k not in allowed)


def _check_toggles(updates: dict[str, Any], keys: tuple[str, ...]) -> None:
    """Toggle values must be real booleans; "false" and 0 are rejected, never coerced."""
    bad = sorted(k for k in keys if k in updates and not isinstance(updates[k], bool))
    if bad:
        raise ValueError(f"Notification settings must be true or false: {', '.join(bad)}")


# --- Global (admin) ---


def get_global_notification_settings(db: Session) -> GlobalNotificationSettings | None:
    return db.query(GlobalNotificationSettings).order_by(GlobalNotificationSettings.id).first()


def global_settings_dict(row: GlobalNotificationSettings | None) -> dict[str, bool]:
    """All keys, defaults (True) when no row exists."""
    return {k: (getattr(row, k) if row is not None else True) for k in PREFERENCE_KEYS}


def update_global_notification_settings(db: Session, updates: dict[str, bool]) -> GlobalNotificationSettings:
    """Get-or-create the singleton and apply updates. Unknown keys raise ValueError."""
    bad = _unknown_keys(updates, PREFERENCE_KEYS)
    if bad:
        raise ValueError(f"Unknown notification settings: {', '.join(bad)}")
    _check_toggles(updates, PREFERENCE_KEYS)
    row = get_global_notification_settings(db)
    if row is None:
        row = GlobalNotificationSettings()
        db.add(row)
    for key, value in updates.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


# --- Granular (per user) ---


def get_user_notification_preferences(db: Session, user_address: str) -> UserNotificationPreferences | None:
    return (
        db.query(UserNotificationPreferences)
        .filter(UserNotificationPreferences.user_address == _normalize(user_address))
        .first()
    )


def user_preferences_dict(row: UserNotificationPreferences | None) -> dict[str, bool]:
    return {k: (getattr(row, k) if row is not None else True) for k in PREFERENCE_KEYS}


def update_user_notification_preferences(
    db: Session, user_address: str, updates: dict[str, bool]
) -> UserNotificationPreferences:
    """Create with defaults on first write. Unknown keys raise ValueError."""
    bad = _unknown_keys(updates, PREFERENCE_KEYS)
    if bad:
        raise ValueError(f"Unknown notification preferences: {', '.join(bad)}")
    _check_toggles(updates, PREFERENCE_KEYS)
    row = get_user_notification_preferences(db, user_address)
    if row is None:
        row = UserNotificationPreferences(user_address=_normalize(user_address))
        db.add(row)
    for key, value in updates.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


# --- Coarse channels (per user) ---


def get_notification_preferences(db: Session, user_address: str) -> NotificationPreferences:
    """Stored row, or an unsaved row carrying the defaults (push on, in-app on, email off)."""
    addr = _normalize(user_address)
    row = db.get(NotificationPreferences, addr)
    if row is None:
        return NotificationPreferences(
            user_address=addr, fid=None, push_enabled=True, in_app_enabled=True, email_enabled=False
        )
    return row


def update_notification_preferences(db: Session, user_address: str, updates: dict[str, Any]) -> NotificationPreferences:
    bad = _unknown_keys(updates, COARSE_KEYS)
    if bad:
        raise ValueError(f"Unknown notification preferences: {', '.join(bad)}")
    _check_toggles(updates, ("push_enabled", "in_app_enabled", "email_enabled"))
    addr = _normalize(user_address)
    row = db.get(NotificationPreferences, addr)
    if row is None:
        row = NotificationPreferences(user_address=addr, push_enabled=True, in_app_enabled=True, email_enabled=False)
        db.add(row)
    for key, value in updates.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


# --- Filter ---


def should_send(db: Session, user_address: str, type_: NotificationType | str) -> bool:
    key = preference_key_for(type_)
    if key is None:
        return True
    global_row = get_global_notification_settings(db)
    if global_row is not None and getattr(global_row, key) is False:
        return False
    user_row = get_user_notification_preferences(db, user_address)
    if user_row is not None and getattr(user_row, key) is False:
        return False
    return True
