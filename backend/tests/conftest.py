"""
Shared fixtures: a throwaway SQLite database per test run, fresh tables per test, and in-memory
fakes for the indexer, push gateway and name resolver.
"""
import os
import tempfile
import threading

# Settings are read at import time; point them at test values before any app import
_DB_DIR = tempfile.mkdtemp(prefix="marketplace-notifications-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["NOTIFICATION_WORKER_INTERVAL_SECONDS"] = "0"
os.environ["ADMIN_ADDRESSES"] = "0xadmin000000000000000000000000000000000001"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["PUBLIC_URL"] = "https://market.test"
os.environ["NEYNAR_API_KEY"] = ""
os.environ["SUBGRAPH_URL"] = ""

import pytest

import app.models  # noqa: F401
from app.core.errors import IndexerError
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.services.identity.cache import IdentityService
from app.services.identity.resolver import DisplayName
from app.services.indexer.types import (
    AuctionEnded,
    BidPlaced,
    BidRecord,
    Finalized,
    ListingCreated,
    ListingRef,
    Purchase,
    TokenRef,
)
from app.services.notifications.handlers import EventNotifier
from app.services.notifications.outbid import OutbidResolver
from app.services.notifications.store import NotificationStore
from app.services.notifications.worker import NotificationWorker
from app.services.push.queue import PushBatchQueue

SELLER = "0x5e11e70000000000000000000000000000000001"
BIDDER_A = "0xa000000000000000000000000000000000000001"
BIDDER_B = "0xb000000000000000000000000000000000000002"
BUYER = "0xc000000000000000000000000000000000000003"
FAN = "0xf000000000000000000000000000000000000004"
NO_FARCASTER = "0xd000000000000000000000000000000000000005"

KNOWN_USERS = {
    SELLER: DisplayName(name="seller.eth", fid=101),
    BIDDER_A: DisplayName(name="alice", fid=201),
    BIDDER_B: DisplayName(name="bob", fid=202),
    BUYER: DisplayName(name="carol", fid=301),
    FAN: DisplayName(name="fan", fid=401),
}


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeGateway:
    """Records every send; returns `ok` (or raises `error` when set)."""

    def __init__(self, ok: bool = True):
        self.ok = ok
        self.error: Exception | None = None
        self.calls: list[dict] = []
        self._lock = threading.Lock()

    def send(self, fids, title, body, target_url):
        with self._lock:
            self.calls.append({"fids": list(fids), "title": title, "body": body, "target_url": target_url})
        if self.error is not None:
            raise self.error
        return self.ok


class FakeResolver:
    def __init__(self, users=None, titles=None):
        self.users = dict(KNOWN_USERS if users is None else users)
        self.titles = dict(titles or {})
        self.name_calls: list[str] = []
        self.fail_names = False

    def resolve_display_name(self, address):
        self.name_calls.append(address)
        if self.fail_names:
            raise RuntimeError("neynar down")
        return self.users.get(address.lower())

    def resolve_artwork_title(self, token):
        return self.titles.get(token.id)


class FakeIndexer:
    """Serves canned events; a flow name in `failing` raises IndexerError from its fetcher."""

    def __init__(self):
        self.listings: list[ListingCreated] = []
        self.bids: list[BidPlaced] = []
        self.purchases: list[Purchase] = []
        self.finalized: list[Finalized] = []
        self.ended: list[AuctionEnded] = []
        self.ended_now: int | None = None
        self.ranked: dict[str, list[BidRecord]] = {}
        self.stock: dict[str, object] = {}
        self.failing: set[str] = set()
        self.fetches: list[tuple[str, int]] = []

    def _fetch(self, name, since, events):
        self.fetches.append((name, since))
        if name in self.failing:
            raise IndexerError(f"{name} query failed")
        return list(events)

    def listings_since(self, since_block):
        return self._fetch("listings", since_block, self.listings)

    def bids_since(self, since_timestamp):
        return self._fetch("bids", since_timestamp, self.bids)

    def purchases_since(self, since_timestamp):
        return self._fetch("purchases", since_timestamp, self.purchases)

    def finalized_since(self, since_block):
        return self._fetch("finalized", since_block, self.finalized)

    def ended_auctions_since(self, since_timestamp, now):
        self.ended_now = now
        return self._fetch("ended_auctions", since_timestamp, self.ended)

    def listing_bids(self, listing_id, first):
        if "listing_bids" in self.failing:
            raise IndexerError("ranked bids query failed")
        return sorted(self.ranked.get(listing_id, []), key=lambda b: b.amount, reverse=True)[:first]

    def listing_stock(self, listing_id):
        return self.stock.get(listing_id)


# ---------------------------------------------------------------------------
# Event builders
# ---------------------------------------------------------------------------


def token(token_id="7", spec="ERC721"):
    return TokenRef(address="0x70c0000000000000000000000000000000000abc", id=token_id, spec=spec)


def listing_ref(listing_id="1", seller=SELLER, spec="ERC721", listing_type="AUCTION", erc20=None):
    return ListingRef(listing_id=listing_id, seller=seller, token=token(spec=spec), listing_type=listing_type, erc20=erc20)


def bid_event(bidder, amount, listing_id="1", at_time=1_700_000_000):
    return BidPlaced(listing_id=listing_id, bidder=bidder, amount=amount, at_time=at_time, listing=listing_ref(listing_id))


def listing_event(listing_id="1", seller=SELLER, listing_type="FIXED_PRICE", at_block=100):
    return ListingCreated(
        listing_id=listing_id, seller=seller, token=token(), listing_type=listing_type, status="ACTIVE", at_block=at_block
    )


def purchase_event(buyer=BUYER, amount=10**18, count=1, listing_id="2", spec="ERC721"):
    return Purchase(
        listing_id=listing_id, buyer=buyer, amount=amount, count=count, at_time=1_700_000_000,
        listing=listing_ref(listing_id, spec=spec, listing_type="FIXED_PRICE"),
    )


def finalized_event(listing_id="3", winner=None, amount=0):
    winning = BidRecord(bidder=winner, amount=amount) if winner else None
    return Finalized(
        listing_id=listing_id, seller=SELLER, has_bid=winner is not None, winning_bid=winning, at_block=200,
        listing=listing_ref(listing_id),
    )


def ended_event(listing_id="4", winner=None, amount=0):
    winning = BidRecord(bidder=winner, amount=amount, timestamp=1_700_000_000) if winner else None
    return AuctionEnded(
        listing_id=listing_id, seller=SELLER, has_bid=winner is not None, winning_bid=winning,
        start_time=1_699_000_000, end_time=1_700_003_000, first_bid_at=1_700_000_000 if winner else None,
        listing=listing_ref(listing_id),
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def indexer():
    return FakeIndexer()


@pytest.fixture
def push_queue(gateway):
    # Long delay: tests flush explicitly unless they exercise the timer
    queue = PushBatchQueue(gateway, batch_size=100, batch_delay_seconds=60)
    yield queue
    queue.close()


@pytest.fixture
def identity(resolver):
    return IdentityService(resolver)


@pytest.fixture
def store(identity, push_queue):
    s = NotificationStore(identity, push_queue, session_factory=SessionLocal, public_url="https://market.test")
    push_queue.on_delivery_failed = s.mark_push_failed
    return s


@pytest.fixture
def notifier(store, identity, indexer):
    return EventNotifier(store, identity, indexer, OutbidResolver(indexer))


@pytest.fixture
def worker(notifier, indexer, push_queue):
    return NotificationWorker(
        session_factory=SessionLocal,
        indexer=indexer,
        notifier=notifier,
        push_queue=push_queue,
        event_concurrency=2,
        clock=lambda: 1_700_003_600,
    )
