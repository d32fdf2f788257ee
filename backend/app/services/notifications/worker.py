"""
Notification worker: one run = read cursor, fan out the five event flows, flush pushes, advance cursor.

Flows (listings, bids, purchases, finalized, ended auctions) run concurrently; within a flow, events
are handled on a pool of event_concurrency threads, each with its own DB session. A flow that fails does not stop
the others. Whatever happens, pending pushes are flushed and the cursor is written exactly once
(block watermark carried over, timestamp watermark = run start) before the first error is re-raised.
"""
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Callable

from sqlalchemy.orm import Session

from app.core.constants import EVENT_KIND_COUNT
from app.services.indexer.fetchers import MarketplaceIndexer
from app.services.indexer.types import RawEvent
from app.services.notifications.cursor import Watermark, read_cursor, write_cursor
from app.services.notifications.handlers import EventNotifier
from app.services.push.queue import PushBatchQueue

logger = logging.getLogger(__name__)


class NotificationWorker:
    def __init__(
        self,
        *,
        session_factory: Callable[[], Session],
        indexer: MarketplaceIndexer,
        notifier: EventNotifier,
        push_queue: PushBatchQueue,
        event_concurrency: int = 4,
        start_block: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if event_concurrency < 1:
            raise ValueError("event_concurrency must be at least 1")
        self._session_factory = session_factory
        self._indexer = indexer
        self._notifier = notifier
        self._push_queue = push_queue
        self._event_concurrency = event_concurrency
        self._start_block = start_block
        self._clock = clock

    def run(self) -> Watermark:
        """Process everything since the stored watermark. Returns the watermark written."""
        started = int(self._clock())
        db = self._session_factory()
        try:
            watermark = read_cursor(db, now=started, start_block=self._start_block)
        finally:
            db.close()
        logger.info(
            "Notification worker starting: since block=%s timestamp=%s", watermark.block, watermark.timestamp
        )

        try:
            self._process_all(watermark, started)
        except Exception as e:
            logger.error("Error processing events, advancing cursor anyway: %s", e)
            self._flush_pending()
            self._advance(watermark.block, started)
            raise
        self._flush_pending()
        return self._advance(watermark.block, started)

    def _process_all(self, watermark: Watermark, now: int) -> None:
        flows: dict[str, tuple[Callable[[int], list[RawEvent]], int]] = {
            "listings": (self._indexer.listings_since, watermark.block),
            "bids": (self._indexer.bids_since, watermark.timestamp),
            "purchases": (self._indexer.purchases_since, watermark.timestamp),
            "finalized": (self._indexer.finalized_since, watermark.block),
            # Auctions past their end time that nobody finalized yet; bounded by the timestamp watermark
            "ended_auctions": (partial(self._indexer.ended_auctions_since, now=now), watermark.timestamp),
        }
        with ThreadPoolExecutor(max_workers=EVENT_KIND_COUNT, thread_name_prefix="notification_flow") as pool:
            futures = {name: pool.submit(self._run_flow, name, fetch, since) for name, (fetch, since) in flows.items()}
        first_error = _first_error(futures, "Flow")
        if first_error is not None:
            raise first_error

    def _run_flow(self, name: str, fetch: Callable[[int], list[RawEvent]], since: int) -> int:
        events = fetch(since)
        if not events:
            logger.debug("No new %s since %s", name, since)
            return 0
        logger.info("Processing %s new %s", len(events), name)
        with ThreadPoolExecutor(max_workers=self._event_concurrency, thread_name_prefix=f"notify_{name}") as pool:
            futures = {f"{name}[{e.listing_id}]#{i}": pool.submit(self._handle_event, e) for i, e in enumerate(events)}
        first_error = _first_error(futures, "Event")
        if first_error is not None:
            raise first_error
        return len(events)

    def _handle_event(self, event: RawEvent) -> None:
        db = self._session_factory()
        try:
            self._notifier.handle(db, event)
        finally:
            db.close()

    def close(self) -> None:
        """Deliver what is still pending, then stop the push queue timers."""
        self._flush_pending()
        self._push_queue.close()

    def _flush_pending(self) -> None:
        try:
            self._push_queue.flush_all()
        except Exception as e:
            logger.error("Failed to flush push notifications: %s", e, exc_info=True)

    def _advance(self, block: int, timestamp: int) -> Watermark:
        db = self._session_factory()
        try:
            state = write_cursor(db, block, timestamp)
            logger.info("Notification cursor advanced to block=%s timestamp=%s", block, timestamp)
            return Watermark(block=state.last_processed_block, timestamp=state.last_processed_timestamp)
        finally:
            db.close()


def _first_error(futures: dict[str, Future], label: str) -> BaseException | None:
    """Wait on all futures, log each failure, return the first."""
    first: BaseException | None = None
    for name, fut in futures.items():
        err = fut.exception()
        if err is None:
            continue
        logger.error("%s %s failed: %s", label, name, err, exc_info=err)
        if first is None:
            first = err
    return first


# --- Process-wide wiring ---

_worker: NotificationWorker | None = None
_worker_lock = threading.Lock()


def build_notification_worker() -> NotificationWorker:
    """Wire the default worker from settings. One push queue per process, shared by every run."""
    from app.config import settings
    from app.db.session import SessionLocal
    from app.services.identity import build_identity_service
    from app.services.indexer import build_indexer
    from app.services.notifications.outbid import OutbidResolver
    from app.services.notifications.store import NotificationStore
    from app.services.push import build_push_queue

    indexer = build_indexer()
    identity = build_identity_service()
    push_queue = build_push_queue()
    store = NotificationStore(identity, push_queue, session_factory=SessionLocal, public_url=settings.public_url)
    push_queue.on_delivery_failed = store.mark_push_failed
    notifier = EventNotifier(store, identity, indexer, OutbidResolver(indexer))
    return NotificationWorker(
        session_factory=SessionLocal,
        indexer=indexer,
        notifier=notifier,
        push_queue=push_queue,
        event_concurrency=settings.event_concurrency,
        start_block=settings.notification_start_block or None,
    )


def get_notification_worker() -> NotificationWorker:
    global _worker
    with _worker_lock:
        if _worker is None:
            _worker = build_notification_worker()
        return _worker


def run_notification_worker() -> Watermark:
    return get_notification_worker().run()


def shutdown_notification_worker() -> None:
    """Flush and stop the shared push queue (app shutdown)."""
    global _worker
    with _worker_lock:
        worker, _worker = _worker, None
    if worker is not None:
        worker.close()
