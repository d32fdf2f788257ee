"""
IdentityService: the one lookup-or-fetch path for display names, FIDs and artwork titles.

Cache semantics: user_cache rows are authoritative until expires_at (USER_CACHE_TTL_DAYS after
the lookup). A miss or an expired row calls the resolver; hits are written back. Resolver
misses are not cached, so an address that links a Farcaster account later is picked up on the
next lookup. Resolver and cache-write failures are logged and never raised: callers always get
a value (fallback name, fallback title) or None (fid).
"""
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.constants import USER_CACHE_TTL_DAYS
from app.models.user_cache import UserCache
from app.services.identity.resolver import DisplayName, NameResolver
from app.services.indexer.types import TokenRef

logger = logging.getLogger(__name__)


def short_address(address: str) -> str:
    """0x1234...abcd"""
    a = (address or "").strip()
    if len(a) <= 10:
        return a
    return f"{a[:6]}...{a[-4:]}"


def fallback_artwork_title(token: TokenRef) -> str:
    return f"Token #{token.id}"


def _aware(dt: datetime | None) -> datetime | None:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class IdentityService:
    def __init__(self, resolver: NameResolver, *, cache_ttl_days: int = USER_CACHE_TTL_DAYS) -> None:
        self._resolver = resolver
        self._ttl = timedelta(days=cache_ttl_days)

    def _cached(self, db: Session, address: str) -> DisplayName | None:
        row = db.get(UserCache, address)
        if row is None:
            return None
        if _aware(row.expires_at) <= datetime.now(timezone.utc):
            return None
        return DisplayName(name=row.display_name or short_address(address), fid=row.fid)

    def _store(self, db: Session, address: str, found: DisplayName) -> None:
        now = datetime.now(timezone.utc)
        try:
            db.merge(UserCache(eth_address=address, display_name=found.name, fid=found.fid, expires_at=now + self._ttl, updated_at=now))
            db.commit()
        except SQLAlchemyError as e:
            # Concurrent lookups of the same address race on insert; the other writer wins
            db.rollback()
            logger.debug("user_cache write for %s skipped: %s", address, e)

    def lookup(self, db: Session, address: str) -> DisplayName | None:
        """Cache first, then resolver. None when nobody is linked to this address."""
        addr = (address or "").strip().lower()
        if not addr:
            return None
        cached = self._cached(db, addr)
        if cached is not None:
            return cached
        try:
            found = self._resolver.resolve_display_name(addr)
        except Exception as e:
            logger.warning("Name lookup for %s failed: %s", addr, e)
            return None
        if found is not None:
            self._store(db, addr, found)
        return found

    def ensure_fid(self, db: Session, address: str, fid: int | None = None) -> int | None:
        """Given fid wins; otherwise cached/resolved fid; None when the address has no Farcaster account."""
        if fid:
            return fid
        found = self.lookup(db, address)
        return found.fid if found else None

    def display_name(self, db: Session, address: str) -> str:
        found = self.lookup(db, address)
        if found and found.name:
            return found.name
        return short_address(address)

    def artwork_title(self, token: TokenRef) -> str:
        try:
            title = self._resolver.resolve_artwork_title(token)
        except Exception as e:
            logger.warning("Artwork title lookup for %s/%s failed: %s", token.address, token.id, e)
            title = None
        return title or fallback_artwork_title(token)
