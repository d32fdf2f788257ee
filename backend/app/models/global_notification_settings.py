"""Admin kill-switches (singleton row). A False here wins over any per-user True."""
from sqlalchemy import Boolean, Column, DateTime, Integer, true
from sqlalchemy.sql import func

from app.db.base import Base


class GlobalNotificationSettings(Base):
    __tablename__ = "global_notification_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    new_bid_on_your_auction = Column(Boolean, nullable=False, default=True, server_default=true())
    auction_ending_24h = Column(Boolean, nullable=False, default=True, server_default=true())
    auction_ending_1h = Column(Boolean, nullable=False, default=True, server_default=true())
    offer_received = Column(Boolean, nullable=False, default=True, server_default=true())
    outbid = Column(Boolean, nullable=False, default=True, server_default=true())
    auction_won = Column(Boolean, nullable=False, default=True, server_default=true())
    purchase_confirmation = Column(Boolean, nullable=False, default=True, server_default=true())
    offer_accepted = Column(Boolean, nullable=False, default=True, server_default=true())
    offer_rejected = Column(Boolean, nullable=False, default=True, server_default=true())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
