#!/usr/bin/env python3
"""
Run the notification worker once (same as one scheduler tick or POST /cron/notifications).
Run after migrations so the notification tables exist.
Run: cd backend && python scripts/run_notification_worker.py
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.services.notifications.worker import run_notification_worker, shutdown_notification_worker


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")
    print("Running notification worker once...")
    try:
        watermark = run_notification_worker()
    except Exception as e:
        print(f"Worker run failed (cursor advanced anyway): {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        shutdown_notification_worker()
    print(f"Done. cursor block={watermark.block} timestamp={watermark.timestamp}")


if __name__ == "__main__":
    main()
