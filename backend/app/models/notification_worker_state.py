"""Worker cursor (singleton row): last processed block and unix timestamp. Written once per worker run."""
from sqlalchemy import BigInteger, Column, DateTime, Integer
from sqlalchemy.sql import func

from app.db.base import Base


class NotificationWorkerState(Base):
    __tablename__ = "notification_worker_state"

    id = Column(Integer, primary_key=True, autoincrement=True)
    last_processed_block = Column(BigInteger, nullable=False)
    last_processed_timestamp = Column(BigInteger, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
