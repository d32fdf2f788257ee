"""Display names, FIDs and artwork titles with user_cache in front of Neynar."""
from app.config import settings
from app.services.identity.cache import IdentityService, fallback_artwork_title, short_address
from app.services.identity.resolver import DisplayName, NameResolver, NeynarNameResolver


def build_identity_service() -> IdentityService:
    resolver = NeynarNameResolver(
        settings.neynar_api_key,
        base_url=settings.neynar_base_url,
        metadata_url=settings.nft_metadata_url,
        timeout=settings.neynar_timeout_seconds,
        metadata_timeout=settings.metadata_timeout_seconds,
    )
    return IdentityService(resolver)


__all__ = [
    "DisplayName",
    "IdentityService",
    "NameResolver",
    "NeynarNameResolver",
    "build_identity_service",
    "fallback_artwork_title",
    "short_address",
]
