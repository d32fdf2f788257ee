"""
Every NOTIFICATION_WORKER_INTERVAL_SECONDS: one notification worker run (fetch new marketplace
events, create notifications, flush pushes, advance cursor). Registered with max_instances=1 so
runs never overlap. Failures propagate to APScheduler, which logs them and emits EVENT_JOB_ERROR.
"""
import logging
import time

from app.services.notifications.worker import run_notification_worker

logger = logging.getLogger(__name__)


def run_notification_worker_job() -> None:
    started = time.monotonic()
    try:
        watermark = run_notification_worker()
    except Exception as e:
        logger.error("Notification worker job failed after %.1fs: %s", time.monotonic() - started, e)
        raise
    logger.info(
        "Notification worker job done in %.1fs (cursor block=%s timestamp=%s)",
        time.monotonic() - started,
        watermark.block,
        watermark.timestamp,
    )
