"""Push delivery: Neynar gateway + batching queue."""
from app.config import settings
from app.services.push.gateway import NeynarPushGateway, PushGateway
from app.services.push.queue import PushBatchQueue, QueuedPush, batch_key


def build_push_queue() -> PushBatchQueue:
    gateway = NeynarPushGateway(
        settings.neynar_api_key,
        base_url=settings.neynar_base_url,
        timeout=settings.push_timeout_seconds,
    )
    return PushBatchQueue(
        gateway,
        batch_size=settings.push_batch_size,
        batch_delay_seconds=settings.push_batch_delay_seconds,
    )


__all__ = ["NeynarPushGateway", "PushBatchQueue", "PushGateway", "QueuedPush", "batch_key", "build_push_queue"]
