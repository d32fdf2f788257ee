"""
Batched push delivery: group pending pushes by content, send each group in one gateway call.

Group key is title + "::" + target_url (exact content match; different wording is never merged).
Per key: ABSENT -> ACCUMULATING (first enqueue, timer armed) -> FLUSHING (cap reached, timer fired,
or flush_all) -> ABSENT. The group is removed from pending state under the lock before the gateway
call, so an enqueue during an in-flight flush starts a fresh group instead of racing it.
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from app.core.constants import PUSH_MAX_BATCH_SIZE
from app.services.push.gateway import PushGateway

logger = logging.getLogger(__name__)


@dataclass
class QueuedPush:
    fid: int
    title: str
    message: str
    target_url: str
    metadata: dict[str, Any] | None = None
    queued_at: float = field(default_factory=time.time)


def batch_key(title: str, target_url: str) -> str:
    return f"{title}::{target_url}"


class PushBatchQueue:
    """
    Pending groups keyed by batch_key, each with its own delay timer.

    enqueue() flushes synchronously when a group reaches batch_size; otherwise the group's timer
    flushes it batch_delay_seconds after its first entry. flush_all() drains everything and waits for
    flushes already in flight. on_delivery_failed (optional) receives the items of a group whose
    gateway call failed.
    """

    def __init__(
        self,
        gateway: PushGateway,
        *,
        batch_size: int = PUSH_MAX_BATCH_SIZE,
        batch_delay_seconds: float = 2.0,
        on_delivery_failed: Callable[[list[QueuedPush]], None] | None = None,
    ) -> None:
        if not 1 <= batch_size <= PUSH_MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {PUSH_MAX_BATCH_SIZE}")
        self._gateway = gateway
        self._batch_size = batch_size
        self._batch_delay = batch_delay_seconds
        self.on_delivery_failed = on_delivery_failed
        self._cond = threading.Condition()
        # batch_key -> {fid: QueuedPush}; dict keeps insertion order and makes fid unique per group
        self._pending: dict[str, dict[int, QueuedPush]] = {}
        self._timers: dict[str, threading.Timer] = {}
        self._in_flight = 0

    def enqueue(
        self,
        fid: int,
        title: str,
        message: str,
        target_url: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        key = batch_key(title, target_url)
        full_batch: list[QueuedPush] | None = None
        with self._cond:
            group = self._pending.get(key)
            if group is None:
                group = {}
                self._pending[key] = group
                timer = threading.Timer(self._batch_delay, self._flush, args=(key,))
                timer.daemon = True
                self._timers[key] = timer
                timer.start()
            if fid not in group:
                group[fid] = QueuedPush(fid=fid, title=title, message=message, target_url=target_url, metadata=metadata)
            if len(group) >= self._batch_size:
                # Detached under the lock: no later enqueue may join a full group
                full_batch = self._detach(key)
        if full_batch is not None:
            self._send(full_batch)

    def pending_keys(self) -> list[str]:
        with self._cond:
            return list(self._pending)

    def pending_count(self, key: str | None = None) -> int:
        with self._cond:
            if key is not None:
                return len(self._pending.get(key) or {})
            return sum(len(g) for g in self._pending.values())

    def _detach(self, key: str) -> list[QueuedPush] | None:
        """Remove a group from pending state and count it as in flight. Caller holds self._cond."""
        timer = self._timers.pop(key, None)
        group = self._pending.pop(key, None)
        if timer is not None:
            timer.cancel()
        if not group:
            return None
        self._in_flight += 1
        return list(group.values())

    def _flush(self, key: str) -> None:
        """Send one group. No-op when the group was already drained by another flush."""
        with self._cond:
            items = self._detach(key)
        if items is not None:
            self._send(items)

    def _send(self, items: list[QueuedPush]) -> None:
        """Deliver a detached group in one gateway call. Always releases its in-flight slot."""
        try:
            fids = list(dict.fromkeys(item.fid for item in items))
            first = items[0]
            logger.info("Flushing push batch: %s FIDs for %r", len(fids), first.title)
            try:
                ok = self._gateway.send(fids, first.title, first.message, first.target_url)
            except Exception as e:
                logger.warning("Push batch %r failed: %s", first.title, e, exc_info=True)
                ok = False
            if not ok and self.on_delivery_failed is not None:
                try:
                    self.on_delivery_failed(items)
                except Exception as e:
                    logger.warning("on_delivery_failed callback failed for %r: %s", first.title, e, exc_info=True)
        finally:
            with self._cond:
                self._in_flight -= 1
                self._cond.notify_all()

    def flush_all(self, timeout: float | None = None) -> None:
        """Flush every pending group now, then wait until no flush is in flight."""
        keys = self.pending_keys()
        if keys:
            logger.info("Flushing %s push batches", len(keys))
        while True:
            for key in keys:
                self._flush(key)
            with self._cond:
                # Enqueues racing with this call may open new groups; drain until quiet
                keys = list(self._pending)
                if keys:
                    continue
                if not self._in_flight:
                    return
                if not self._cond.wait(timeout=timeout):
                    logger.warning("flush_all timed out with %s flushes in flight", self._in_flight)
                    return
                keys = list(self._pending)

    def close(self) -> None:
        """Cancel timers and drop pending groups without sending (process shutdown)."""
        with self._cond:
            for timer in self._timers.values():
                timer.cancel()
            dropped = sum(len(g) for g in self._pending.values())
            self._timers.clear()
            self._pending.clear()
        if dropped:
            logger.warning("Push queue closed with %s undelivered pushes", dropped)
