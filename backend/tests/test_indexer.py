"""Subgraph client and event fetchers against a mocked HTTP transport."""
import json

import httpx
import pytest

from app.core.errors import IndexerError
from app.services.indexer.client import SubgraphClient
from app.services.indexer.fetchers import MarketplaceIndexer, auction_end_time
from app.services.indexer.types import BidPlaced, ListingCreated

SUBGRAPH = "https://subgraph.test/auctionhouse"


def _listing(listing_id, **extra):
    row = {
        "id": listing_id,
        "listingId": listing_id,
        "seller": "0xSELLER",
        "listingType": "AUCTION",
        "tokenAddress": "0xtoken",
        "tokenId": "7",
        "tokenSpec": "ERC721",
        "erc20": None,
    }
    row.update(extra)
    return row


def _indexer(handler):
    client = SubgraphClient(SUBGRAPH, api_key="k", transport=httpx.MockTransport(handler))
    return MarketplaceIndexer(client)


def _respond(data, status=200):
    def handler(request):
        handler.requests.append(json.loads(request.content))
        handler.headers.append(request.headers)
        return httpx.Response(status, json=data)

    handler.requests = []
    handler.headers = []
    return handler


def test_listings_since_parses_and_drops_cancelled():
    handler = _respond({"data": {"listings": [
        _listing("1", status="ACTIVE", createdAtBlock="120"),
        _listing("2", status="CANCELLED", createdAtBlock="121"),
    ]}})
    events = _indexer(handler).listings_since(100)

    assert events == [ListingCreated(
        listing_id="1", seller="0xSELLER", token=events[0].token, listing_type="AUCTION", status="ACTIVE", at_block=120
    )]
    assert handler.requests[0]["variables"] == {"since": "100"}
    assert handler.headers[0]["authorization"] == "Bearer k"


def test_bids_since_parses_amounts_as_ints():
    handler = _respond({"data": {"bids": [{
        "id": "b1", "bidder": "0xBIDDER", "amount": "1500000000000000000", "timestamp": "1700000000",
        "listing": _listing("9"),
    }]}})
    (bid,) = _indexer(handler).bids_since(1_699_999_000)
    assert isinstance(bid, BidPlaced)
    assert bid.amount == 1_500_000_000_000_000_000
    assert bid.listing.listing_id == "9"


def test_malformed_records_are_skipped():
    handler = _respond({"data": {"bids": [
        {"id": "bad", "bidder": "0xB", "amount": None, "timestamp": "1", "listing": _listing("9")},
        {"id": "ok", "bidder": "0xB", "amount": "5", "timestamp": "2", "listing": _listing("9")},
    ]}})
    bids = _indexer(handler).bids_since(0)
    assert [b.amount for b in bids] == [5]


def test_erc1155_purchase_count_and_spec():
    handler = _respond({"data": {"purchases": [{
        "id": "p1", "buyer": "0xBUYER", "amount": "10", "count": "3", "timestamp": "5",
        "listing": _listing("4", tokenSpec="ERC1155", listingType="FIXED_PRICE"),
    }]}})
    (purchase,) = _indexer(handler).purchases_since(0)
    assert purchase.count == 3
    assert purchase.listing.token.is_erc1155


def test_finalized_carries_winning_bid():
    handler = _respond({"data": {"listings": [_listing(
        "3", hasBid=True, updatedAtBlock="300", bids=[{"bidder": "0xW", "amount": "99", "timestamp": "1"}]
    )]}})
    (fin,) = _indexer(handler).finalized_since(0)
    assert fin.has_bid
    assert fin.winning_bid.bidder == "0xW"
    assert fin.winning_bid.amount == 99


def test_listing_bids_sorted_descending():
    handler = _respond({"data": {"bids": [
        {"bidder": "0xA", "amount": "100"},
        {"bidder": "0xB", "amount": "300"},
        {"bidder": "0xC", "amount": "200"},
    ]}})
    bids = _indexer(handler).listing_bids("1", 5)
    assert [b.amount for b in bids] == [300, 200, 100]
    assert handler.requests[0]["variables"] == {"listingId": "1", "first": 5}


def test_listing_stock_remaining():
    handler = _respond({"data": {"listing": {"totalAvailable": "10", "totalSold": "9"}}})
    assert _indexer(handler).listing_stock("1").remaining == 1


def test_graphql_errors_raise():
    handler = _respond({"errors": [{"message": "bad query"}]})
    with pytest.raises(IndexerError):
        _indexer(handler).bids_since(0)


def test_http_error_status_raises():
    handler = _respond({"message": "nope"}, status=502)
    with pytest.raises(IndexerError):
        _indexer(handler).listings_since(0)


def test_transport_failure_raises():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(IndexerError):
        _indexer(handler).purchases_since(0)


def test_unconfigured_endpoint_raises():
    with pytest.raises(IndexerError):
        MarketplaceIndexer(SubgraphClient("")).listings_since(0)


NOW = 1_700_003_600
SINCE = NOW - 3600


def _auction(listing_id, start, end, bids=(), first_bid_at=None, has_bid=None):
    return _listing(
        listing_id,
        listingType="1",
        startTime=str(start),
        endTime=str(end),
        hasBid=bool(bids) if has_bid is None else has_bid,
        bids=[{"bidder": b, "amount": str(a), "timestamp": str(NOW - 600)} for b, a in bids],
        firstBid=[{"timestamp": str(first_bid_at)}] if first_bid_at is not None else [],
    )


def test_ended_auctions_fixed_start_inside_watermark():
    handler = _respond({"data": {"listings": [
        _auction("1", start=1_699_000_000, end=NOW - 60, bids=[("0xW", 5)]),
        _auction("2", start=1_699_000_000, end=SINCE - 60),
    ]}})

    (ended,) = _indexer(handler).ended_auctions_since(SINCE, NOW)

    assert ended.listing_id == "1"
    assert ended.winning_bid.bidder == "0xW"
    assert handler.requests[0]["variables"] == {"now": str(NOW)}


def test_start_on_first_bid_duration_counts_from_first_bid():
    handler = _respond({"data": {"listings": [
        # duration 1800 from a bid 2400s ago: ended 600s ago
        _auction("1", start=0, end=1800, bids=[("0xW", 5)], first_bid_at=NOW - 2400),
        # duration 86400 from a bid 2400s ago: still running
        _auction("2", start=0, end=86_400, bids=[("0xW", 5)], first_bid_at=NOW - 2400),
        # never started
        _auction("3", start=0, end=1800),
        # started but the first bid time is unknown
        _auction("4", start=0, end=1800, bids=[("0xW", 5)]),
    ]}})

    events = _indexer(handler).ended_auctions_since(SINCE, NOW)

    assert [e.listing_id for e in events] == ["1"]


def test_start_on_first_bid_with_converted_timestamp():
    handler = _respond({"data": {"listings": [
        _auction("1", start=0, end=NOW - 120, bids=[("0xW", 5)], first_bid_at=NOW - 90_000),
    ]}})
    (ended,) = _indexer(handler).ended_auctions_since(SINCE, NOW)
    assert auction_end_time(ended) == NOW - 120
