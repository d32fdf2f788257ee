"""
Notification inbox API: list, unread count, mark one read, mark all read.

Recipient identified by X-User-Address header or ?address= (see app.api.deps).
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.deps import user_address
from app.core.constants import NOTIFICATIONS_DEFAULT_LIMIT, NOTIFICATIONS_MAX_LIMIT
from app.db.session import get_db
from app.models.notification import Notification
from app.services.notifications.store import (
    get_unread_count,
    get_user_notifications,
    mark_all_as_read,
    mark_as_read,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def notification_to_dict(r: Notification) -> dict[str, Any]:
    return {
        "id": r.id,
        "type": r.type,
        "title": r.title,
        "message": r.message,
        "listing_id": r.listing_id,
        "read": bool(r.read),
        "read_at": r.read_at.isoformat() if r.read_at else None,
        "created_at": r.created_at.isoformat() if r.created_at else None,
        "metadata": r.payload or {},
    }


# --- List ---


@router.get("/notifications")
def list_notifications(
    db: Session = Depends(get_db),
    address: str = Depends(user_address),
    limit: int = Query(NOTIFICATIONS_DEFAULT_LIMIT, ge=1, le=NOTIFICATIONS_MAX_LIMIT),
    offset: int = Query(0, ge=0),
    unread_only: bool = Query(False),
) -> dict[str, Any]:
    """List the user's notifications, newest first. unread_only=true for the unread view."""
    rows, total = get_user_notifications(db, address, limit=limit, offset=offset, unread_only=unread_only)
    return {
        "notifications": [notification_to_dict(r) for r in rows],
        "total": total,
        "unread_count": get_unread_count(db, address),
    }


@router.get("/notifications/unread-count")
def unread_count(
    db: Session = Depends(get_db),
    address: str = Depends(user_address),
) -> dict[str, int]:
    return {"unread_count": get_unread_count(db, address)}


# --- Mark one read ---


@router.patch("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    address: str = Depends(user_address),
) -> dict[str, Any]:
    row = mark_as_read(db, notification_id, address)
    if row is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"ok": True, "id": notification_id, "read_at": row.read_at.isoformat() if row.read_at else None}


# --- Mark all read ---


@router.post("/notifications/mark-all-read")
def mark_all_read(
    db: Session = Depends(get_db),
    address: str = Depends(user_address),
) -> dict[str, Any]:
    """Mark every unread notification for the user as read ('Clear all' in the UI)."""
    updated = mark_all_as_read(db, address)
    logger.info("Marked %s notifications read for %s", updated, address)
    return {"ok": True, "marked_count": updated}
