"""Admin notification kill-switches. Caller address must be in ADMIN_ADDRESSES."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import StrictBool
from sqlalchemy.orm import Session

from app.api.deps import admin_address
from app.db.session import get_db
from app.services.notifications.preferences import (
    get_global_notification_settings,
    global_settings_dict,
    update_global_notification_settings,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/admin/notifications/settings")
def get_settings(
    db: Session = Depends(get_db),
    admin: str = Depends(admin_address),
) -> dict[str, bool]:
    return global_settings_dict(get_global_notification_settings(db))


@router.patch("/admin/notifications/settings")
def patch_settings(
    updates: dict[str, StrictBool],
    db: Session = Depends(get_db),
    admin: str = Depends(admin_address),
) -> dict[str, bool]:
    try:
        row = update_global_notification_settings(db, updates)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info("Admin %s updated global notification settings: %s", admin, updates)
    return global_settings_dict(row)
