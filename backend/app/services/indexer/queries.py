"""GraphQL documents for the auctionhouse subgraph. All "since" queries are ascending and capped at INDEXER_PAGE_SIZE."""
from app.core.constants import INDEXER_PAGE_SIZE

_LISTING_FIELDS = """
      id
      listingId
      seller
      listingType
      tokenAddress
      tokenId
      tokenSpec
      erc20
"""

NEW_LISTINGS_QUERY = f"""
  query NewListings($since: BigInt!) {{
    listings(
      where: {{ createdAtBlock_gte: $since }}
      first: {INDEXER_PAGE_SIZE}
      orderBy: createdAtBlock
      orderDirection: asc
    ) {{
{_LISTING_FIELDS}
      status
      createdAtBlock
    }}
  }}
"""

NEW_BIDS_QUERY = f"""
  query NewBids($since: BigInt!) {{
    bids(
      where: {{ timestamp_gte: $since }}
      first: {INDEXER_PAGE_SIZE}
      orderBy: timestamp
      orderDirection: asc
    ) {{
      id
      listing {{
{_LISTING_FIELDS}
      }}
      bidder
      amount
      timestamp
    }}
  }}
"""

NEW_PURCHASES_QUERY = f"""
  query NewPurchases($since: BigInt!) {{
    purchases(
      where: {{ timestamp_gte: $since }}
      first: {INDEXER_PAGE_SIZE}
      orderBy: timestamp
      orderDirection: asc
    ) {{
      id
      listing {{
{_LISTING_FIELDS}
      }}
      buyer
      amount
      count
      timestamp
    }}
  }}
"""

FINALIZED_LISTINGS_QUERY = f"""
  query FinalizedListings($since: BigInt!) {{
    listings(
      where: {{ finalized: true, updatedAtBlock_gte: $since }}
      first: {INDEXER_PAGE_SIZE}
      orderBy: updatedAtBlock
      orderDirection: asc
    ) {{
{_LISTING_FIELDS}
      hasBid
      bids(orderBy: amount, orderDirection: desc, first: 1) {{
        bidder
        amount
      }}
      updatedAtBlock
    }}
  }}
"""

LISTING_BIDS_QUERY = """
  query ListingBids($listingId: BigInt!, $first: Int!) {
    bids(
      where: { listingId: $listingId }
      orderBy: amount
      orderDirection: desc
      first: $first
    ) {
      id
      bidder
      amount
      timestamp
    }
  }
"""

LISTING_STOCK_QUERY = """
  query GetListing($listingId: ID!) {
    listing(id: $listingId) {
      totalAvailable
      totalSold
    }
  }
"""

# No lower bound on endTime: for start-on-first-bid auctions it may still be a duration.
# The fetcher computes the real end time and applies the watermark.
ENDED_AUCTIONS_QUERY = f"""
  query EndedAuctions($now: BigInt!) {{
    listings(
      where: {{ status: "ACTIVE", finalized: false, listingType: 1, endTime_lte: $now }}
      first: {INDEXER_PAGE_SIZE}
      orderBy: endTime
      orderDirection: desc
    ) {{
{_LISTING_FIELDS}
      startTime
      endTime
      hasBid
      bids(orderBy: amount, orderDirection: desc, first: 1) {{
        bidder
        amount
        timestamp
      }}
      firstBid: bids(orderBy: timestamp, orderDirection: asc, first: 1) {{
        timestamp
      }}
    }}
  }}
"""
