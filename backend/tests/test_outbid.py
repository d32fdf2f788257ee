"""Previous-leader inference and OUTBID notifications."""
import pytest

from app.models.notification import Notification
from app.services.indexer.types import BidRecord
from app.services.notifications.outbid import OutbidResolver, find_previous_leader
from conftest import BIDDER_A, BIDDER_B, BUYER, bid_event


def _outbids(db):
    return db.query(Notification).filter(Notification.type == "OUTBID").all()


def test_previous_leader_is_first_lower_bid_from_someone_else():
    ranked = [BidRecord(BIDDER_B, 150), BidRecord(BIDDER_A, 100)]
    assert find_previous_leader(ranked, BIDDER_B, 150) == BidRecord(BIDDER_A, 100)


def test_own_bids_are_skipped_case_insensitively():
    ranked = [BidRecord(BIDDER_A, 200), BidRecord(BIDDER_A.upper().replace("0X", "0x"), 100)]
    assert find_previous_leader(ranked, BIDDER_A, 200) is None


def test_equal_amount_is_not_an_outbid():
    ranked = [BidRecord(BIDDER_A, 100)]
    assert find_previous_leader(ranked, BIDDER_B, 100) is None


def test_higher_bid_from_a_third_bidder_is_walked_past():
    ranked = [BidRecord(BUYER, 200), BidRecord(BIDDER_B, 150), BidRecord(BIDDER_A, 100)]
    assert find_previous_leader(ranked, BIDDER_B, 150) == BidRecord(BIDDER_A, 100)


def test_first_bid_has_no_previous_leader():
    assert find_previous_leader([BidRecord(BIDDER_A, 100)], BIDDER_A, 100) is None
    assert find_previous_leader([], BIDDER_A, 100) is None


def test_resolver_depth_must_allow_skipping_own_bid(indexer):
    with pytest.raises(ValueError):
        OutbidResolver(indexer, depth=1)


def test_outbid_sent_once_to_the_displaced_bidder(db, indexer, notifier):
    first = bid_event(BIDDER_A, 100, at_time=1)
    second = bid_event(BIDDER_B, 150, at_time=2)
    indexer.ranked["1"] = [BidRecord(BIDDER_A, 100), BidRecord(BIDDER_B, 150)]

    notifier.handle(db, first)
    notifier.handle(db, second)

    outbids = _outbids(db)
    assert len(outbids) == 1
    assert outbids[0].user_address == BIDDER_A
    assert outbids[0].payload["newHighestBid"] == "150"
    assert outbids[0].payload["previousBid"] == "100"


def test_single_bid_produces_no_outbid(db, indexer, notifier):
    indexer.ranked["1"] = [BidRecord(BIDDER_A, 100)]
    notifier.handle(db, bid_event(BIDDER_A, 100))
    assert _outbids(db) == []


def test_raising_your_own_bid_does_not_outbid_you(db, indexer, notifier):
    indexer.ranked["1"] = [BidRecord(BIDDER_A, 100), BidRecord(BIDDER_A, 200)]
    notifier.handle(db, bid_event(BIDDER_A, 100, at_time=1))
    notifier.handle(db, bid_event(BIDDER_A, 200, at_time=2))
    assert _outbids(db) == []


def test_ranked_lookup_failure_skips_outbid_only(db, indexer, notifier):
    indexer.failing.add("listing_bids")
    notifier.handle(db, bid_event(BIDDER_B, 150))
    types = {n.type for n in db.query(Notification).all()}
    assert types == {"NEW_BID", "BID_PLACED"}


def test_outbid_goes_to_lower_bidder_when_a_higher_bid_already_exists(db, indexer, notifier):
    indexer.ranked["1"] = [BidRecord(BUYER, 200), BidRecord(BIDDER_B, 150), BidRecord(BIDDER_A, 100)]

    notifier.handle(db, bid_event(BIDDER_B, 150))

    (outbid,) = _outbids(db)
    assert outbid.user_address == BIDDER_A
    assert outbid.payload["previousBid"] == "100"
