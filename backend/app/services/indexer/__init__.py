"""Auctionhouse subgraph: typed events and the watermark fetchers. build_indexer() wires them from settings."""
from app.config import settings
from app.services.indexer.client import SubgraphClient
from app.services.indexer.fetchers import MarketplaceIndexer


def build_indexer() -> MarketplaceIndexer:
    client = SubgraphClient(
        settings.subgraph_url,
        api_key=settings.graph_api_key,
        timeout=settings.indexer_timeout_seconds,
    )
    return MarketplaceIndexer(client)


__all__ = ["MarketplaceIndexer", "SubgraphClient", "build_indexer"]
