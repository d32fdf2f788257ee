"""In-app notification: one row per delivered (user, type, listing) event.

user_address: lowercased wallet address of the recipient.
fid: Farcaster id resolved at creation so push delivery needs no second lookup.
type: NotificationType value ('OUTBID', 'NEW_BID', ...).
read / read_at: read state (read_at NULL = unread).
pushed: accepted into the push batching queue (reset if the gateway call fails).
metadata: JSON type-specific payload (artworkName, amounts, counterparties, ...).
"""
from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String, Text, false
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from app.db.base import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_address = Column(String(64), nullable=False, index=True)
    fid = Column(Integer, nullable=True)
    type = Column(String(48), nullable=False, index=True)
    listing_id = Column(String(64), nullable=True)
    title = Column(String(256), nullable=False)
    message = Column(Text, nullable=False)
    payload = Column("metadata", JSON().with_variant(JSONB(), "postgresql"), nullable=True)  # column name 'metadata' in DB
    read = Column(Boolean, nullable=False, default=False, server_default=false())
    pushed = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)

    # Dedup lookup: (user, type, listing) within the trailing window
    __table_args__ = (
        Index("ix_notifications_dedup", "user_address", "type", "listing_id", "created_at"),
    )

    @property
    def persisted(self) -> bool:
        return self.id is not None
