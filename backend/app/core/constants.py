"""
Centralized constants for the notification worker and push delivery (Encapsulate What Changes).

Change job IDs, windows, and caps here instead of scattering literals across main, services and routes.
Values that differ per environment (intervals, batch delay, concurrency) come from app.config settings.
"""

# Scheduler job ID (must match id used in main.py add_job)
NOTIFICATION_WORKER_JOB_ID = "notification_worker"

# First run with no worker state: start this many seconds in the past
INITIAL_LOOKBACK_SECONDS = 3600

# Same (user, type, listing) within this window is a duplicate, not a new notification
DEDUP_WINDOW_SECONDS = 3600

# Indexer convention: every "since watermark" query is capped at this page size
INDEXER_PAGE_SIZE = 1000

# Top bids fetched per listing to find the previous leader (must be > 1: the new
# bidder's own earlier bid may rank highest)
OUTBID_LOOKUP_DEPTH = 5

# Neynar frame notifications accept at most this many FIDs per request
PUSH_MAX_BATCH_SIZE = 100

# Flows run concurrently, one thread per event kind
EVENT_KIND_COUNT = 5

# Start-on-first-bid auctions store endTime as a duration until the first bid converts it;
# anything up to one year is read as a duration
AUCTION_DURATION_MAX_SECONDS = 31_536_000

# Name resolver cache (user_cache rows)
USER_CACHE_TTL_DAYS = 30

# Inbox API caps
NOTIFICATIONS_DEFAULT_LIMIT = 50
NOTIFICATIONS_MAX_LIMIT = 200

# ETH / WETH style amounts: 18 decimals, zero address means native ETH
DEFAULT_TOKEN_DECIMALS = 18
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
