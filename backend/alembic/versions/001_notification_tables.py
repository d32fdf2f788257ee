"""Notification pipeline tables: notifications, preferences, global settings, worker cursor, user cache, follows, favorites."""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PREFERENCE_KEYS = (
    "new_bid_on_your_auction",
    "auction_ending_24h",
    "auction_ending_1h",
    "offer_received",
    "outbid",
    "auction_won",
    "purchase_confirmation",
    "offer_accepted",
    "offer_rejected",
)


def _preference_columns() -> list[sa.Column]:
    return [sa.Column(k, sa.Boolean(), nullable=False, server_default=sa.true()) for k in PREFERENCE_KEYS]


def upgrade() -> None:
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_address", sa.String(64), nullable=False),
        sa.Column("fid", sa.Integer(), nullable=True),
        sa.Column("type", sa.String(48), nullable=False),
        sa.Column("listing_id", sa.String(64), nullable=True),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("pushed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_address", "notifications", ["user_address"])
    op.create_index("ix_notifications_type", "notifications", ["type"])
    # Dedup lookup: (user, type, listing) within the trailing window
    op.create_index(
        "ix_notifications_dedup", "notifications", ["user_address", "type", "listing_id", "created_at"]
    )

    op.create_table(
        "notification_preferences",
        sa.Column("user_address", sa.String(64), nullable=False),
        sa.Column("fid", sa.Integer(), nullable=True),
        sa.Column("push_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("in_app_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("user_address"),
    )

    op.create_table(
        "user_notification_preferences",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_address", sa.String(64), nullable=False),
        *_preference_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_user_notification_preferences_user_address",
        "user_notification_preferences",
        ["user_address"],
        unique=True,
    )

    op.create_table(
        "global_notification_settings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        *_preference_columns(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "notification_worker_state",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("last_processed_block", sa.BigInteger(), nullable=False),
        sa.Column("last_processed_timestamp", sa.BigInteger(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "user_cache",
        sa.Column("eth_address", sa.String(64), nullable=False),
        sa.Column("display_name", sa.String(256), nullable=True),
        sa.Column("fid", sa.Integer(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("eth_address"),
    )
    op.create_index("ix_user_cache_fid", "user_cache", ["fid"])

    op.create_table(
        "follows",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("follower_address", sa.String(64), nullable=False),
        sa.Column("following_address", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("follower_address", "following_address", name="uq_follows_pair"),
    )
    op.create_index("ix_follows_follower_address", "follows", ["follower_address"])
    op.create_index("ix_follows_following_address", "follows", ["following_address"])

    op.create_table(
        "favorites",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_address", sa.String(64), nullable=False),
        sa.Column("listing_id", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_address", "listing_id", name="uq_favorites_user_listing"),
    )
    op.create_index("ix_favorites_user_address", "favorites", ["user_address"])
    op.create_index("ix_favorites_listing_id", "favorites", ["listing_id"])


def downgrade() -> None:
    op.drop_index("ix_favorites_listing_id", table_name="favorites")
    op.drop_index("ix_favorites_user_address", table_name="favorites")
    op.drop_table("favorites")
    op.drop_index("ix_follows_following_address", table_name="follows")
    op.drop_index("ix_follows_follower_address", table_name="follows")
    op.drop_table("follows")
    op.drop_index("ix_user_cache_fid", table_name="user_cache")
    op.drop_table("user_cache")
    op.drop_table("notification_worker_state")
    op.drop_table("global_notification_settings")
    op.drop_index("ix_user_notification_preferences_user_address", table_name="user_notification_preferences")
    op.drop_table("user_notification_preferences")
    op.drop_table("notification_preferences")
    op.drop_index("ix_notifications_dedup", table_name="notifications")
    op.drop_index("ix_notifications_type", table_name="notifications")
    op.drop_index("ix_notifications_user_address", table_name="notifications")
    op.drop_table("notifications")
