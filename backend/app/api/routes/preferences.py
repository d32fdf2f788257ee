"""User notification preferences: granular per-kind toggles plus push / in-app / email channels."""
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, StrictBool
from sqlalchemy.orm import Session

from app.api.deps import user_address
from app.db.session import get_db
from app.services.notifications.preferences import (
    COARSE_KEYS,
    get_notification_preferences,
    get_user_notification_preferences,
    update_notification_preferences,
    update_user_notification_preferences,
    user_preferences_dict,
)

router = APIRouter()
logger = logging.getLogger(__name__)


class PreferencesUpdate(BaseModel):
    """Any subset of the granular per-kind toggles and the channel switches. Values must be JSON booleans."""

    model_config = ConfigDict(extra="forbid")

    new_bid_on_your_auction: StrictBool | None = None
    auction_ending_24h: StrictBool | None = None
    auction_ending_1h: StrictBool | None = None
    offer_received: StrictBool | None = None
    outbid: StrictBool | None = None
    auction_won: StrictBool | None = None
    purchase_confirmation: StrictBool | None = None
    offer_accepted: StrictBool | None = None
    offer_rejected: StrictBool | None = None

    push_enabled: StrictBool | None = None
    in_app_enabled: StrictBool | None = None
    email_enabled: StrictBool | None = None


def _preferences_response(db: Session, address: str) -> dict[str, Any]:
    channels = get_notification_preferences(db, address)
    return {
        "address": address,
        "preferences": user_preferences_dict(get_user_notification_preferences(db, address)),
        "push_enabled": bool(channels.push_enabled),
        "in_app_enabled": bool(channels.in_app_enabled),
        "email_enabled": bool(channels.email_enabled),
    }


@router.get("/user/notification-preferences")
def get_preferences(
    db: Session = Depends(get_db),
    address: str = Depends(user_address),
) -> dict[str, Any]:
    return _preferences_response(db, address)


@router.patch("/user/notification-preferences")
def patch_preferences(
    body: PreferencesUpdate,
    db: Session = Depends(get_db),
    address: str = Depends(user_address),
) -> dict[str, Any]:
    """Only the keys present in the body change; everything else keeps its value."""
    updates = body.model_dump(exclude_none=True)
    channel_updates = {k: v for k, v in updates.items() if k in COARSE_KEYS}
    granular_updates = {k: v for k, v in updates.items() if k not in COARSE_KEYS}
    try:
        if granular_updates:
            update_user_notification_preferences(db, address, granular_updates)
        if channel_updates:
            update_notification_preferences(db, address, channel_updates)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info("Updated notification preferences for %s: %s", address, sorted(updates))
    return _preferences_response(db, address)
