"""Cached address -> (display name, fid) lookups from Neynar. Rows past expires_at are refetched."""
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.db.base import Base


class UserCache(Base):
    __tablename__ = "user_cache"

    eth_address = Column(String(64), primary_key=True)
    display_name = Column(String(256), nullable=True)
    fid = Column(Integer, nullable=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
