"""
Name resolution collaborators: address -> (display name, fid) and token -> artwork title.

Implementations may raise or return None; IdentityService turns both into fallbacks.
"""
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from app.services.indexer.types import TokenRef

logger = logging.getLogger(__name__)

USER_BY_ADDRESS_PATH = "/v2/farcaster/user/bulk-by-address/"


@dataclass(frozen=True)
class DisplayName:
    name: str
    fid: int | None = None


class NameResolver(Protocol):
    def resolve_display_name(self, address: str) -> DisplayName | None:
        ...

    def resolve_artwork_title(self, token: TokenRef) -> str | None:
        ...


class NeynarNameResolver:
    """Neynar bulk-by-address for users; optional metadata service for artwork titles."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.neynar.com",
        metadata_url: str = "",
        timeout: float = 10.0,
        metadata_timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._metadata_url = metadata_url.rstrip("/")
        self._timeout = timeout
        self._metadata_timeout = metadata_timeout
        self._transport = transport

    def resolve_display_name(self, address: str) -> DisplayName | None:
        """First Farcaster user verified for this address, or None (no key, 404, no user)."""
        if not self._api_key:
            logger.debug("NEYNAR_API_KEY not set; skipping user lookup")
            return None
        addr = address.lower()
        with httpx.Client(timeout=self._timeout, transport=self._transport) as c:
            r = c.get(
                f"{self._base_url}{USER_BY_ADDRESS_PATH}",
                params={"addresses": addr},
                headers={"x-api-key": self._api_key, "x-neynar-experimental": "false"},
            )
        if r.status_code == 404:
            return None
        r.raise_for_status()
        data: dict[str, Any] = r.json() or {}
        users = data.get(addr) or []
        if not isinstance(users, list) or not users:
            return None
        user = users[0] or {}
        name = (user.get("display_name") or user.get("username") or "").strip()
        fid = user.get("fid")
        if not name and fid is None:
            return None
        return DisplayName(name=name or f"fid:{fid}", fid=int(fid) if fid is not None else None)

    def resolve_artwork_title(self, token: TokenRef) -> str | None:
        """title or name from the metadata service; None when unconfigured or missing."""
        if not self._metadata_url:
            return None
        with httpx.Client(timeout=self._metadata_timeout, transport=self._transport) as c:
            r = c.get(f"{self._metadata_url}/{token.address}/{token.id}", params={"spec": token.spec})
        if r.status_code == 404:
            return None
        r.raise_for_status()
        meta = r.json() or {}
        title = (meta.get("title") or meta.get("name") or "").strip()
        return title or None
