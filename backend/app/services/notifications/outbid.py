"""
Outbid inference: who held the lead before this bid?

Bids are ranked by amount, descending. The new bidder's own entries are skipped (raising your
own bid never outbids you). The first remaining bid strictly below the new amount belongs to the
previous leader. Equal amounts are not an outbid.
"""
from app.core.constants import OUTBID_LOOKUP_DEPTH
from app.services.indexer.fetchers import MarketplaceIndexer
from app.services.indexer.types import BidPlaced, BidRecord


def find_previous_leader(ranked_bids: list[BidRecord], new_bidder: str, new_amount: int) -> BidRecord | None:
    bidder = new_bidder.lower()
    for existing in ranked_bids:
        if existing.bidder.lower() == bidder:
            continue
        if existing.amount < new_amount:
            return existing
    return None


class OutbidResolver:
    def __init__(self, indexer: MarketplaceIndexer, *, depth: int = OUTBID_LOOKUP_DEPTH) -> None:
        if depth < 2:
            raise ValueError("depth must be at least 2")
        self._indexer = indexer
        self._depth = depth

    def previous_leader(self, bid: BidPlaced) -> BidRecord | None:
        """Raises IndexerError when the ranked-bids lookup fails."""
        ranked = self._indexer.listing_bids(bid.listing_id, self._depth)
        return find_previous_leader(ranked, bid.bidder, bid.amount)
