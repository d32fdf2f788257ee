"""
Notification store: dedup, preference gate, persistence, push hand-off, and inbox reads.

create_notification steps, in order:
1. Dedup: same (user, type, listing) created within DEDUP_WINDOW_SECONDS -> return that row.
2. Preference gate: should_send False -> return an unsaved, already-read notification.
3. Complete the fid through IdentityService.ensure_fid (cache first).
4. Insert only when the user's in_app_enabled is on, re-checking dedup under a striped lock.
5. Enqueue a push when push_enabled is on and the caller did not pass send_push=False.

Insert failures raise NotificationPersistenceError. Enqueue failures are logged; the in-app row stays.
"""
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.constants import DEDUP_WINDOW_SECONDS, NOTIFICATIONS_DEFAULT_LIMIT
from app.core.errors import NotificationPersistenceError
from app.models.notification import Notification
from app.services.identity.cache import IdentityService
from app.services.notifications.preferences import get_notification_preferences, should_send
from app.services.notifications.types import NotificationType
from app.services.push.queue import PushBatchQueue, QueuedPush

logger = logging.getLogger(__name__)

_LOCK_STRIPES = 64


def _normalize(address: str) -> str:
    return (address or "").strip().lower()


def find_duplicate(
    db: Session,
    user_address: str,
    type_: str,
    listing_id: str | None,
    *,
    window_seconds: int = DEDUP_WINDOW_SECONDS,
) -> Notification | None:
    """Newest notification for (user, type[, listing]) created inside the window."""
    cutoff = datetime.now(timezone.utc) - timedelta(seconds=window_seconds)
    q = db.query(Notification).filter(
        Notification.user_address == _normalize(user_address),
        Notification.type == type_,
        Notification.created_at >= cutoff,
    )
    if listing_id:
        q = q.filter(Notification.listing_id == listing_id)
    return q.order_by(Notification.created_at.desc()).first()


class NotificationStore:
    def __init__(
        self,
        identity: IdentityService,
        push_queue: PushBatchQueue,
        *,
        session_factory: Callable[[], Session],
        public_url: str,
    ) -> None:
        self._identity = identity
        self._push_queue = push_queue
        self._session_factory = session_factory
        self._public_url = public_url.rstrip("/")
        # Dedup re-check + insert for one (user, type, listing) must not interleave across worker threads
        self._locks = [threading.Lock() for _ in range(_LOCK_STRIPES)]

    def _lock_for(self, *identity: Any) -> threading.Lock:
        return self._locks[hash(identity) % _LOCK_STRIPES]

    def target_url(self, listing_id: str | None) -> str:
        if listing_id:
            return f"{self._public_url}/listing/{listing_id}"
        return f"{self._public_url}/notifications"

    def create_notification(
        self,
        db: Session,
        user_address: str,
        type_: NotificationType | str,
        title: str,
        message: str,
        *,
        fid: int | None = None,
        listing_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        send_push: bool = True,
    ) -> Notification:
        addr = _normalize(user_address)
        kind = NotificationType(type_).value

        duplicate = find_duplicate(db, addr, kind, listing_id)
        if duplicate is not None:
            logger.debug("Duplicate notification %s for %s listing=%s; returning existing", kind, addr, listing_id)
            return duplicate

        if not should_send(db, addr, kind):
            logger.debug("Notification %s disabled for %s by preferences", kind, addr)
            now = datetime.now(timezone.utc)
            return Notification(
                user_address=addr, fid=fid, type=kind, listing_id=listing_id, title=title, message=message,
                payload=metadata, read=True, pushed=False, created_at=now, read_at=now,
            )

        # Outside the dedup lock: ensure_fid may make a Neynar call
        fid = self._identity.ensure_fid(db, addr, fid)
        prefs = get_notification_preferences(db, addr)
        will_push = bool(prefs.push_enabled and send_push and fid)

        notification = Notification(
            user_address=addr, fid=fid, type=kind, listing_id=listing_id, title=title, message=message,
            payload=metadata, read=False, pushed=will_push, created_at=datetime.now(timezone.utc),
        )
        if prefs.in_app_enabled:
            with self._lock_for(addr, kind, listing_id):
                # Re-check: another thread may have stored the same notification during the fid lookup
                duplicate = find_duplicate(db, addr, kind, listing_id)
                if duplicate is not None:
                    logger.debug("Duplicate notification %s for %s listing=%s; returning existing", kind, addr, listing_id)
                    return duplicate
                try:
                    db.add(notification)
                    db.commit()
                    db.refresh(notification)
                except SQLAlchemyError as e:
                    db.rollback()
                    raise NotificationPersistenceError(f"Failed to store {kind} notification for {addr}: {e}") from e

        if prefs.push_enabled and send_push and not fid:
            logger.debug("No FID for %s; in-app only for %s", addr, kind)
        if will_push:
            try:
                self._push_queue.enqueue(
                    fid,
                    title,
                    message,
                    self.target_url(listing_id),
                    metadata={"notification_id": notification.id, "type": kind},
                )
            except Exception as e:
                logger.warning("Failed to queue push for %s (%s): %s", addr, kind, e, exc_info=True)
                notification.pushed = False
                if notification.persisted:
                    try:
                        db.commit()
                    except SQLAlchemyError as commit_err:
                        db.rollback()
                        raise NotificationPersistenceError(f"Failed to update pushed flag: {commit_err}") from commit_err
        return notification

    def mark_push_failed(self, items: list[QueuedPush]) -> None:
        """Queue callback: gateway rejected a batch, so its rows are no longer 'pushed'."""
        ids = [i.metadata.get("notification_id") for i in items if i.metadata and i.metadata.get("notification_id")]
        if not ids:
            return
        db = self._session_factory()
        try:
            db.query(Notification).filter(Notification.id.in_(ids)).update(
                {Notification.pushed: False}, synchronize_session=False
            )
            db.commit()
            logger.info("Reset pushed flag on %s notifications after failed delivery", len(ids))
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Could not reset pushed flag on %s notifications: %s", len(ids), e)
        finally:
            db.close()


# --- Inbox reads ---


def get_user_notifications(
    db: Session,
    user_address: str,
    *,
    limit: int = NOTIFICATIONS_DEFAULT_LIMIT,
    offset: int = 0,
    unread_only: bool = False,
) -> tuple[list[Notification], int]:
    """Newest first, plus total matching count for pagination."""
    q = db.query(Notification).filter(Notification.user_address == _normalize(user_address))
    if unread_only:
        q = q.filter(Notification.read.is_(False))
    total = q.count()
    rows = q.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(offset).limit(limit).all()
    return rows, total


def get_unread_count(db: Session, user_address: str) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_address == _normalize(user_address), Notification.read.is_(False))
        .count()
    )


def mark_as_read(db: Session, notification_id: int, user_address: str) -> Notification | None:
    """Mark one of the user's notifications read. None if it does not exist or belongs to someone else."""
    row = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_address == _normalize(user_address))
        .first()
    )
    if row is None:
        return None
    if not row.read:
        row.read = True
        row.read_at = datetime.now(timezone.utc)
        db.commit()
    return row


def mark_all_as_read(db: Session, user_address: str) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_address == _normalize(user_address), Notification.read.is_(False))
        .update({Notification.read: True, Notification.read_at: datetime.now(timezone.utc)}, synchronize_session=False)
    )
    db.commit()
    return updated
