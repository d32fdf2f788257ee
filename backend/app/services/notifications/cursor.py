"""Worker watermark (notification_worker_state singleton). Read freely; written once per worker run."""
import time
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.constants import INITIAL_LOOKBACK_SECONDS
from app.models.notification_worker_state import NotificationWorkerState


@dataclass(frozen=True)
class Watermark:
    block: int
    timestamp: int


def _state(db: Session) -> NotificationWorkerState | None:
    return db.query(NotificationWorkerState).order_by(NotificationWorkerState.id).first()


def cursor_exists(db: Session) -> bool:
    return _state(db) is not None


def read_cursor(db: Session, *, now: int | None = None, start_block: int | None = None) -> Watermark:
    """
    Stored watermark. On the very first run both fields are now minus INITIAL_LOOKBACK_SECONDS,
    except the block, which is start_block when one is configured.
    """
    state = _state(db)
    if state is not None:
        return Watermark(block=state.last_processed_block, timestamp=state.last_processed_timestamp)
    start = (int(time.time()) if now is None else now) - INITIAL_LOOKBACK_SECONDS
    return Watermark(block=start_block if start_block else start, timestamp=start)


def write_cursor(db: Session, block: int, timestamp: int) -> NotificationWorkerState:
    """Upsert the singleton row (created on the first write)."""
    state = _state(db)
    if state is None:
        state = NotificationWorkerState(last_processed_block=block, last_processed_timestamp=timestamp)
        db.add(state)
    else:
        state.last_processed_block = block
        state.last_processed_timestamp = timestamp
    db.commit()
    db.refresh(state)
    return state
