"""
FastAPI app entrypoint.

Notification inbox + preferences API; the notification worker runs on the in-process scheduler
(and can be triggered via POST /cron/notifications).
"""
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from app.api.routes import admin, cron, notifications, preferences
from app.config import settings
from app.core.constants import NOTIFICATION_WORKER_JOB_ID
from app.scheduler.notification_job import run_notification_worker_job
from app.services.notifications.worker import shutdown_notification_worker

logger = logging.getLogger(__name__)

_scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.notification_worker_interval_seconds > 0:
        _scheduler.add_job(
            run_notification_worker_job,
            "interval",
            seconds=settings.notification_worker_interval_seconds,
            id=NOTIFICATION_WORKER_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        _scheduler.start()
        logger.info(
            "Notification worker scheduled every %ss", settings.notification_worker_interval_seconds
        )
    else:
        logger.info("Notification worker schedule disabled; use POST /cron/notifications")
    app.state.scheduler = _scheduler
    yield
    if _scheduler.running:
        _scheduler.shutdown(wait=False)
    shutdown_notification_worker()


app = FastAPI(title="Marketplace Notifications", version="0.1.0", lifespan=lifespan)

# CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for the production frontend
_cors_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_cors_extra = os.getenv("CORS_ORIGINS", "")
if _cors_extra:
    _cors_origins.extend(o.strip() for o in _cors_extra.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(notifications.router, tags=["notifications"])
app.include_router(preferences.router, tags=["preferences"])
app.include_router(admin.router, tags=["admin"])
app.include_router(cron.router, tags=["cron"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Marketplace Notifications API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
