"""Coarse per-user delivery channels: push, in-app, email. Missing row = defaults (push/in-app on, email off)."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, false, true
from sqlalchemy.sql import func

from app.db.base import Base


class NotificationPreferences(Base):
    __tablename__ = "notification_preferences"

    user_address = Column(String(64), primary_key=True)
    fid = Column(Integer, nullable=True)
    push_enabled = Column(Boolean, nullable=False, default=True, server_default=true())
    in_app_enabled = Column(Boolean, nullable=False, default=True, server_default=true())
    email_enabled = Column(Boolean, nullable=False, default=False, server_default=false())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
