"""follower_address follows following_address (both lowercased). Drives FOLLOWED_USER_NEW_LISTING."""
from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from app.db.base import Base


class Follow(Base):
    __tablename__ = "follows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    follower_address = Column(String(64), nullable=False, index=True)
    following_address = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("follower_address", "following_address", name="uq_follows_pair"),)
