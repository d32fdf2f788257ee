"""
Send push notifications via Neynar frame notifications (Farcaster mini-app).
Requires NEYNAR_API_KEY in env. If not configured, send() no-ops (log and return False).

One request carries up to 100 target FIDs; the batching queue groups recipients so each
distinct (title, target_url) costs one call.
"""
import logging
from typing import Protocol

import httpx

from app.core.errors import PushGatewayError

logger = logging.getLogger(__name__)

NOTIFICATIONS_PATH = "/v2/farcaster/frame/notifications"


class PushGateway(Protocol):
    """Anything that can deliver one notification to many FIDs. Returns True on 2xx."""

    def send(self, fids: list[int], title: str, body: str, target_url: str) -> bool:
        ...


class NeynarPushGateway:
    """POST {target_fids, notification: {title, body, target_url}} to Neynar."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.neynar.com",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}{NOTIFICATIONS_PATH}"
        self._timeout = timeout
        self._transport = transport

    def _post(self, payload: dict) -> httpx.Response:
        headers = {"Content-Type": "application/json", "x-api-key": self._api_key}
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                return client.post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise PushGatewayError(f"Neynar request failed: {e}") from e

    def send(self, fids: list[int], title: str, body: str, target_url: str) -> bool:
        """
        Send one notification to all given FIDs.
        Returns True if Neynar accepted it, False otherwise (config missing or API error). Never raises.
        """
        if not self._api_key:
            logger.warning("NEYNAR_API_KEY not configured; skipping push to %s FIDs", len(fids))
            return False
        if not fids:
            return False
        payload = {
            "target_fids": fids,
            "notification": {"title": title, "body": body, "target_url": target_url},
        }
        try:
            resp = self._post(payload)
            if not resp.is_success:
                raise PushGatewayError(f"Neynar API error: {resp.status_code} {resp.text[:500] if resp.text else ''}")
        except PushGatewayError as e:
            logger.warning("Batched push for %r to %s FIDs failed: %s", title, len(fids), e)
            return False
        logger.info("Batched push sent to %s FIDs: %r", len(fids), title)
        return True
