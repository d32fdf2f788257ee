"""Granular per-user toggles, one column per toggleable notification key. All default on."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, true
from sqlalchemy.sql import func

from app.db.base import Base


class UserNotificationPreferences(Base):
    __tablename__ = "user_notification_preferences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_address = Column(String(64), nullable=False, unique=True, index=True)
    new_bid_on_your_auction = Column(Boolean, nullable=False, default=True, server_default=true())
    auction_ending_24h = Column(Boolean, nullable=False, default=True, server_default=true())
    auction_ending_1h = Column(Boolean, nullable=False, default=True, server_default=true())
    offer_received = Column(Boolean, nullable=False, default=True, server_default=true())
    outbid = Column(Boolean, nullable=False, default=True, server_default=true())
    auction_won = Column(Boolean, nullable=False, default=True, server_default=true())
    purchase_confirmation = Column(Boolean, nullable=False, default=True, server_default=true())
    offer_accepted = Column(Boolean, nullable=False, default=True, server_default=true())
    offer_rejected = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
