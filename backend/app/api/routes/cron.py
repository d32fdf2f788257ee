"""Manual / external-cron trigger for one notification worker run."""
import logging
from typing import Any

from fastapi import APIRouter, Depends

from app.api.deps import cron_authorized
from app.core.errors import pipeline_error_to_http
from app.services.notifications.worker import run_notification_worker

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/cron/notifications", dependencies=[Depends(cron_authorized)])
def run_notifications() -> dict[str, Any]:
    """Run the worker synchronously. The cursor advances even when this returns an error."""
    try:
        watermark = run_notification_worker()
    except Exception as e:
        logger.exception("Notification worker run failed: %s", e)
        raise pipeline_error_to_http(e)
    return {"ok": True, "block": watermark.block, "timestamp": watermark.timestamp}
