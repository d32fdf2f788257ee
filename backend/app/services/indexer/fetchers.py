"""
Event fetchers: read marketplace activity since a watermark and normalize it into typed events.

Each fetcher is a pure read. Calling twice with the same watermark returns overlapping events;
the notification store's dedup window absorbs the overlap. Records missing required fields
are skipped with a warning instead of failing the whole page.
"""
import logging
from typing import Any, Callable, TypeVar

from app.core.constants import AUCTION_DURATION_MAX_SECONDS, INDEXER_PAGE_SIZE
from app.core.errors import IndexerError
from app.services.indexer.client import SubgraphClient
from app.services.indexer.queries import (
    ENDED_AUCTIONS_QUERY,
    FINALIZED_LISTINGS_QUERY,
    LISTING_BIDS_QUERY,
    LISTING_STOCK_QUERY,
    NEW_BIDS_QUERY,
    NEW_LISTINGS_QUERY,
    NEW_PURCHASES_QUERY,
)
from app.services.indexer.types import (
    LISTING_TYPES,
    AuctionEnded,
    BidPlaced,
    BidRecord,
    Finalized,
    ListingCreated,
    ListingRef,
    ListingStock,
    Purchase,
    TokenRef,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CANCELLED_STATUS = "CANCELLED"


def _int(value: Any, default: int | None = None) -> int:
    """Subgraph BigInts arrive as strings."""
    if value is None or value == "":
        if default is None:
            raise ValueError("missing integer")
        return default
    return int(str(value), 10)


def _str(value: Any) -> str:
    s = str(value).strip() if value is not None else ""
    if not s:
        raise ValueError("missing string")
    return s


def _listing_type(value: Any) -> str:
    if value is None:
        return "LISTING"
    if isinstance(value, int) or str(value).isdigit():
        idx = int(value)
        return LISTING_TYPES[idx] if 0 <= idx < len(LISTING_TYPES) else "LISTING"
    return str(value)


def _token(raw: dict[str, Any]) -> TokenRef:
    return TokenRef(
        address=_str(raw.get("tokenAddress")),
        id=_str(raw.get("tokenId")),
        spec=str(raw.get("tokenSpec") or ""),
    )


def _listing_ref(raw: dict[str, Any]) -> ListingRef:
    return ListingRef(
        listing_id=_str(raw.get("listingId")),
        seller=_str(raw.get("seller")),
        token=_token(raw),
        listing_type=_listing_type(raw.get("listingType")),
        erc20=raw.get("erc20") or None,
    )


def _parse_listing_created(raw: dict[str, Any]) -> ListingCreated:
    return ListingCreated(
        listing_id=_str(raw.get("listingId")),
        seller=_str(raw.get("seller")),
        token=_token(raw),
        listing_type=_listing_type(raw.get("listingType")),
        status=str(raw.get("status") or ""),
        at_block=_int(raw.get("createdAtBlock")),
    )


def _parse_bid(raw: dict[str, Any]) -> BidPlaced:
    listing = _listing_ref(raw.get("listing") or {})
    return BidPlaced(
        listing_id=listing.listing_id,
        bidder=_str(raw.get("bidder")),
        amount=_int(raw.get("amount")),
        at_time=_int(raw.get("timestamp")),
        listing=listing,
    )


def _parse_purchase(raw: dict[str, Any]) -> Purchase:
    listing = _listing_ref(raw.get("listing") or {})
    return Purchase(
        listing_id=listing.listing_id,
        buyer=_str(raw.get("buyer")),
        amount=_int(raw.get("amount")),
        count=_int(raw.get("count"), default=1),
        at_time=_int(raw.get("timestamp")),
        listing=listing,
    )


def _parse_bid_record(raw: dict[str, Any]) -> BidRecord:
    ts = raw.get("timestamp")
    return BidRecord(
        bidder=_str(raw.get("bidder")),
        amount=_int(raw.get("amount")),
        timestamp=_int(ts) if ts not in (None, "") else None,
    )


def _parse_finalized(raw: dict[str, Any]) -> Finalized:
    listing = _listing_ref(raw)
    bids = raw.get("bids") or []
    winning = _parse_bid_record(bids[0]) if bids else None
    return Finalized(
        listing_id=listing.listing_id,
        seller=listing.seller,
        has_bid=bool(raw.get("hasBid")),
        winning_bid=winning,
        at_block=_int(raw.get("updatedAtBlock")),
        listing=listing,
    )


def _parse_auction_ended(raw: dict[str, Any]) -> AuctionEnded:
    listing = _listing_ref(raw)
    bids = raw.get("bids") or []
    first_bid = (raw.get("firstBid") or [{}])[0]
    first_ts = first_bid.get("timestamp")
    return AuctionEnded(
        listing_id=listing.listing_id,
        seller=listing.seller,
        has_bid=bool(raw.get("hasBid")) or bool(bids),
        winning_bid=_parse_bid_record(bids[0]) if bids else None,
        start_time=_int(raw.get("startTime"), default=0),
        end_time=_int(raw.get("endTime"), default=0),
        first_bid_at=_int(first_ts) if first_ts not in (None, "") else None,
        listing=listing,
    )


def auction_end_time(event: AuctionEnded) -> int | None:
    """Absolute end of the auction, or None when it has not started or cannot be dated."""
    if event.start_time != 0:
        return event.end_time
    if not event.has_bid:
        return None
    if event.end_time > AUCTION_DURATION_MAX_SECONDS:
        return event.end_time
    if event.first_bid_at is None:
        return None
    return event.first_bid_at + event.end_time


def _parse_all(rows: Any, parse: Callable[[dict[str, Any]], T], kind: str) -> list[T]:
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise IndexerError(f"Subgraph returned malformed {kind} list")
    out: list[T] = []
    for raw in rows:
        try:
            out.append(parse(raw))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("Skipping malformed %s record %s: %s", kind, (raw or {}).get("id") if isinstance(raw, dict) else raw, e)
    if len(rows) >= INDEXER_PAGE_SIZE:
        logger.warning("%s page hit the %s-row cap; later events wait for the next run", kind, INDEXER_PAGE_SIZE)
    return out


class MarketplaceIndexer:
    """The five watermark fetchers plus the per-listing lookups used while building notifications."""

    def __init__(self, client: SubgraphClient) -> None:
        self._client = client

    def listings_since(self, since_block: int) -> list[ListingCreated]:
        data = self._client.query(NEW_LISTINGS_QUERY, {"since": str(since_block)})
        listings = _parse_all(data.get("listings"), _parse_listing_created, "listing")
        return [event for event in listings if event.status != CANCELLED_STATUS]

    def bids_since(self, since_timestamp: int) -> list[BidPlaced]:
        data = self._client.query(NEW_BIDS_QUERY, {"since": str(since_timestamp)})
        return _parse_all(data.get("bids"), _parse_bid, "bid")

    def purchases_since(self, since_timestamp: int) -> list[Purchase]:
        data = self._client.query(NEW_PURCHASES_QUERY, {"since": str(since_timestamp)})
        return _parse_all(data.get("purchases"), _parse_purchase, "purchase")

    def finalized_since(self, since_block: int) -> list[Finalized]:
        data = self._client.query(FINALIZED_LISTINGS_QUERY, {"since": str(since_block)})
        return _parse_all(data.get("listings"), _parse_finalized, "finalized listing")

    def ended_auctions_since(self, since_timestamp: int, now: int) -> list[AuctionEnded]:
        """Unfinalized auctions whose real end time falls in [since_timestamp, now]."""
        data = self._client.query(ENDED_AUCTIONS_QUERY, {"now": str(now)})
        ended = []
        for event in _parse_all(data.get("listings"), _parse_auction_ended, "ended auction"):
            end = auction_end_time(event)
            if end is None or not since_timestamp <= end <= now:
                logger.debug("Skipping listing %s: auction end %s outside [%s, %s]", event.listing_id, end, since_timestamp, now)
                continue
            ended.append(event)
        return ended

    def listing_bids(self, listing_id: str, first: int) -> list[BidRecord]:
        """Top `first` bids on a listing, amount descending."""
        data = self._client.query(LISTING_BIDS_QUERY, {"listingId": listing_id, "first": first})
        bids = _parse_all(data.get("bids"), _parse_bid_record, "bid")
        return sorted(bids, key=lambda b: b.amount, reverse=True)

    def listing_stock(self, listing_id: str) -> ListingStock | None:
        data = self._client.query(LISTING_STOCK_QUERY, {"listingId": listing_id})
        raw = data.get("listing")
        if not raw:
            return None
        return ListingStock(
            total_available=_int(raw.get("totalAvailable"), default=0),
            total_sold=_int(raw.get("totalSold"), default=0),
        )
