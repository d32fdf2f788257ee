"""
Typed marketplace events read from the auctionhouse subgraph.

RawEvent is a closed union of five frozen dataclasses. Every consumer dispatches on the
concrete class (see EVENT_KINDS); adding a kind means adding a handler everywhere.
Amounts are ints in the currency's smallest unit (wei for ETH).
"""
from dataclasses import dataclass
from typing import Union

LISTING_TYPES = ("INVALID", "AUCTION", "FIXED_PRICE", "DYNAMIC_PRICE", "OFFERS_ONLY")


@dataclass(frozen=True)
class TokenRef:
    """NFT being sold: contract address, token id, and spec ('ERC721' | 'ERC1155' or numeric)."""
    address: str
    id: str
    spec: str

    @property
    def is_erc1155(self) -> bool:
        return self.spec in ("ERC1155", "2")


@dataclass(frozen=True)
class ListingRef:
    """Listing context the indexer returns alongside bid/purchase/finalize events."""
    listing_id: str
    seller: str
    token: TokenRef
    listing_type: str
    erc20: str | None = None


@dataclass(frozen=True)
class BidRecord:
    """One bid on a listing as returned by the ranked-bids query."""
    bidder: str
    amount: int
    timestamp: int | None = None


@dataclass(frozen=True)
class ListingCreated:
    listing_id: str
    seller: str
    token: TokenRef
    listing_type: str
    status: str
    at_block: int


@dataclass(frozen=True)
class BidPlaced:
    listing_id: str
    bidder: str
    amount: int
    at_time: int
    listing: ListingRef


@dataclass(frozen=True)
class Purchase:
    listing_id: str
    buyer: str
    amount: int
    count: int
    at_time: int
    listing: ListingRef


@dataclass(frozen=True)
class Finalized:
    listing_id: str
    seller: str
    has_bid: bool
    winning_bid: BidRecord | None
    at_block: int
    listing: ListingRef


@dataclass(frozen=True)
class AuctionEnded:
    """
    Auction past its end time that nobody has finalized yet.

    start_time 0 marks a start-on-first-bid auction: end_time is then a duration counted from
    first_bid_at until the contract rewrites it as a timestamp.
    """
    listing_id: str
    seller: str
    has_bid: bool
    winning_bid: BidRecord | None
    start_time: int
    end_time: int
    first_bid_at: int | None
    listing: ListingRef


RawEvent = Union[ListingCreated, BidPlaced, Purchase, Finalized, AuctionEnded]

# Closed set of event classes; dispatch tables must cover exactly these
EVENT_KINDS: tuple[type, ...] = (ListingCreated, BidPlaced, Purchase, Finalized, AuctionEnded)


@dataclass(frozen=True)
class ListingStock:
    """ERC-1155 supply snapshot for low-stock alerts."""
    total_available: int
    total_sold: int

    @property
    def remaining(self) -> int:
        return self.total_available - self.total_sold
