"""
Single source of truth for database tables that exist after migrations.

Use these names when writing raw SQL (e.g. TRUNCATE) and in alembic/env.py to check
that registered models match migrations.
"""
# All tables that exist in the DB. Must match models and migrations.
ALL_TABLE_NAMES = (
    "notifications",
    "notification_preferences",
    "user_notification_preferences",
    "global_notification_settings",
    "notification_worker_state",
    "user_cache",
    "follows",
    "favorites",
)
