#!/usr/bin/env python3
"""
Quick checks so the backend can start. Run from backend/:
  python scripts/check_backend.py
"""
import os
import sys
from pathlib import Path

# Run from backend/
backend_dir = Path(__file__).resolve().parent.parent
os.chdir(backend_dir)
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))


def main():
    errors = []
    warnings = []

    # 1) .env
    env_file = backend_dir / ".env"
    if not env_file.exists():
        warnings.append("backend/.env missing; relying on process environment (DATABASE_URL, SUBGRAPH_URL, ...).")
    else:
        print("OK  .env exists")

    # 2) DB connection and migrated tables
    try:
        from sqlalchemy import inspect, text

        from app.db.session import engine
        from app.db.tables import ALL_TABLE_NAMES

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("OK  Database connection (DATABASE_URL)")
        missing = sorted(set(ALL_TABLE_NAMES) - set(inspect(engine).get_table_names()))
        if missing:
            errors.append(f"Tables missing: {', '.join(missing)}. Run: alembic upgrade head")
            print("FAIL Tables missing:", ", ".join(missing))
        else:
            print("OK  All notification tables present")
    except Exception as e:
        errors.append(f"Database: {e}")
        print("FAIL Database:", e)

    # 3) External services
    from app.config import settings

    if settings.subgraph_url:
        print("OK  SUBGRAPH_URL set")
    else:
        errors.append("SUBGRAPH_URL not set; every worker run will fail to fetch events.")
        print("FAIL SUBGRAPH_URL not set")
    if settings.neynar_api_key:
        print("OK  NEYNAR_API_KEY set")
    else:
        warnings.append("NEYNAR_API_KEY not set: names fall back to short addresses and pushes are skipped.")

    # 4) Block cursor: without a row or NOTIFICATION_START_BLOCK the first block watermark is a unix time
    try:
        from app.db.session import SessionLocal
        from app.services.notifications.cursor import cursor_exists

        db = SessionLocal()
        try:
            seeded = cursor_exists(db)
        finally:
            db.close()
        if seeded:
            print("OK  Notification cursor row present")
        elif settings.notification_start_block:
            print(f"OK  NOTIFICATION_START_BLOCK={settings.notification_start_block} seeds the block cursor")
        else:
            warnings.append(
                "No notification cursor row and NOTIFICATION_START_BLOCK unset: the listings and finalized "
                "flows will see nothing until notification_worker_state.last_processed_block is seeded."
            )
    except Exception as e:
        warnings.append(f"Could not read notification cursor: {e}")

    # 5) App import (catches missing deps, bad imports)
    try:
        from app.main import app  # noqa: F401

        print("OK  App import (app.main)")
    except Exception as e:
        errors.append(f"App import: {e}")
        print("FAIL App import:", e)

    for w in warnings:
        print("WARN", w)
    if errors:
        print("\n---")
        for e in errors:
            print("•", e)
        return 1

    print("\nAll checks passed. Start with: uvicorn app.main:app --reload --port 8000")
    return 0


if __name__ == "__main__":
    sys.exit(main())
