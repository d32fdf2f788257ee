"""Request identity for the notification routes."""
from fastapi import Header, HTTPException, Query

from app.config import settings


def user_address(
    x_user_address: str | None = Header(None, alias="X-User-Address"),
    address: str | None = Query(None),
) -> str:
    """Wallet address from X-User-Address header or ?address=, lowercased. 401 when missing."""
    value = (x_user_address or address or "").strip().lower()
    if not value:
        raise HTTPException(status_code=401, detail="Missing user address")
    return value


def admin_address(
    x_user_address: str | None = Header(None, alias="X-User-Address"),
    address: str | None = Query(None),
) -> str:
    value = user_address(x_user_address, address)
    if value not in settings.admin_address_set():
        raise HTTPException(status_code=403, detail="Admin only")
    return value


def cron_authorized(authorization: str | None = Header(None)) -> None:
    """Bearer CRON_SECRET. Open when no secret is configured (local dev)."""
    if not settings.cron_secret:
        return
    if (authorization or "").strip() != f"Bearer {settings.cron_secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")
