"""user_address favorited listing_id. Drives FAVORITE_NEW_BID and FAVORITE_LOW_STOCK."""
from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from app.db.base import Base


class Favorite(Base):
    __tablename__ = "favorites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_address = Column(String(64), nullable=False, index=True)
    listing_id = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("user_address", "listing_id", name="uq_favorites_user_listing"),)
