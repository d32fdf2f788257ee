"""
Turn indexer events into notifications.

One handler per event class; EventNotifier refuses to start if any kind in EVENT_KINDS lacks a
handler. Lookup failures (names, titles, ranked bids, stock) degrade to fallbacks or skip the
derived notification; NotificationPersistenceError from the store always propagates.
"""
import logging
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import IndexerError
from app.models.favorite import Favorite
from app.models.follow import Follow
from app.services.identity.cache import IdentityService
from app.services.indexer.fetchers import MarketplaceIndexer
from app.services.indexer.types import (
    EVENT_KINDS,
    AuctionEnded,
    BidPlaced,
    Finalized,
    ListingCreated,
    Purchase,
    RawEvent,
)
from app.services.notifications.formatting import format_listing_type, format_price
from app.services.notifications.outbid import OutbidResolver
from app.services.notifications.store import NotificationStore
from app.services.notifications.types import NotificationType

logger = logging.getLogger(__name__)


def _favoriters(db: Session, listing_id: str, exclude: set[str]) -> list[str]:
    """Addresses that favorited the listing, minus the counterparties already notified."""
    rows = db.query(Favorite).filter(Favorite.listing_id == listing_id).all()
    return [r.user_address for r in rows if r.user_address.lower() not in exclude]


class EventNotifier:
    def __init__(
        self,
        store: NotificationStore,
        identity: IdentityService,
        indexer: MarketplaceIndexer,
        outbid: OutbidResolver,
    ) -> None:
        self._store = store
        self._identity = identity
        self._indexer = indexer
        self._outbid = outbid
        self._handlers: dict[type, Callable[[Session, RawEvent], None]] = {
            ListingCreated: self.on_listing_created,
            BidPlaced: self.on_bid_placed,
            Purchase: self.on_purchase,
            Finalized: self.on_finalized,
            AuctionEnded: self.on_auction_ended,
        }
        missing = [k.__name__ for k in EVENT_KINDS if k not in self._handlers]
        if missing:
            raise RuntimeError(f"No notification handler for event kinds: {', '.join(missing)}")

    def handle(self, db: Session, event: RawEvent) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unhandled event kind {type(event).__name__}")
        handler(db, event)

    # --- ListingCreated ---

    def on_listing_created(self, db: Session, event: ListingCreated) -> None:
        artwork = self._identity.artwork_title(event.token)
        listing_type = format_listing_type(event.listing_type)
        self._store.create_notification(
            db,
            event.seller,
            NotificationType.LISTING_CREATED,
            "Listing Created",
            f"You created a {listing_type} {artwork}",
            listing_id=event.listing_id,
            metadata={"listingType": event.listing_type, "artworkName": artwork},
        )

        try:
            followers = [
                f.follower_address
                for f in db.query(Follow).filter(Follow.following_address == event.seller.lower()).all()
            ]
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Could not load followers of %s: %s", event.seller, e)
            return
        if not followers:
            return
        seller_name = self._identity.display_name(db, event.seller)
        for follower in followers:
            self._store.create_notification(
                db,
                follower,
                NotificationType.FOLLOWED_USER_NEW_LISTING,
                "New Listing from Followed User",
                f"{seller_name} created a new {listing_type}: {artwork}",
                listing_id=event.listing_id,
                metadata={"seller": event.seller, "listingType": event.listing_type, "artworkName": artwork},
            )

    # --- BidPlaced ---

    def on_bid_placed(self, db: Session, event: BidPlaced) -> None:
        listing = event.listing
        artwork = self._identity.artwork_title(listing.token)
        bidder_name = self._identity.display_name(db, event.bidder)
        price = format_price(event.amount, listing.erc20)

        self._store.create_notification(
            db,
            listing.seller,
            NotificationType.NEW_BID,
            "New Bid",
            f"New bid on {artwork} from {bidder_name} for {price}",
            listing_id=event.listing_id,
            metadata={"bidder": event.bidder, "amount": str(event.amount), "artworkName": artwork},
        )
        self._store.create_notification(
            db,
            event.bidder,
            NotificationType.BID_PLACED,
            "Bid Placed",
            f"You've placed a bid on {artwork}",
            listing_id=event.listing_id,
            metadata={"amount": str(event.amount), "artworkName": artwork},
        )

        try:
            favoriters = _favoriters(db, event.listing_id, {event.bidder.lower(), listing.seller.lower()})
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Could not load favorites for listing %s: %s", event.listing_id, e)
            favoriters = []
        for user in favoriters:
            self._store.create_notification(
                db,
                user,
                NotificationType.FAVORITE_NEW_BID,
                "New Bid on Favorited Listing",
                f"{artwork} received a new bid: {price}",
                listing_id=event.listing_id,
                metadata={"bidder": event.bidder, "amount": str(event.amount), "artworkName": artwork},
            )

        self._notify_outbid(db, event, artwork)

    def _notify_outbid(self, db: Session, event: BidPlaced, artwork: str) -> None:
        try:
            previous = self._outbid.previous_leader(event)
        except IndexerError as e:
            logger.warning("Outbid lookup for listing %s failed: %s", event.listing_id, e)
            return
        if previous is None:
            return
        erc20 = event.listing.erc20
        self._store.create_notification(
            db,
            previous.bidder,
            NotificationType.OUTBID,
            "You've Been Outbid",
            f"You've been outbid on {artwork}. New highest bid: {format_price(event.amount, erc20)} "
            f"(your bid: {format_price(previous.amount, erc20)})",
            listing_id=event.listing_id,
            metadata={
                "newHighestBid": str(event.amount),
                "previousBid": str(previous.amount),
                "artworkName": artwork,
            },
        )

    # --- Purchase ---

    def on_purchase(self, db: Session, event: Purchase) -> None:
        listing = event.listing
        artwork = self._identity.artwork_title(listing.token)
        buyer_name = self._identity.display_name(db, event.buyer)
        price = format_price(event.amount, listing.erc20)

        self._store.create_notification(
            db,
            listing.seller,
            NotificationType.BUY_NOW_SALE,
            "Sale Completed",
            f"New sale on {artwork} to {buyer_name} for {price}",
            listing_id=event.listing_id,
            metadata={"buyer": event.buyer, "amount": str(event.amount), "count": event.count, "artworkName": artwork},
        )

        erc1155 = listing.token.is_erc1155
        self._store.create_notification(
            db,
            event.buyer,
            NotificationType.ERC1155_PURCHASE if erc1155 else NotificationType.ERC721_PURCHASE,
            "Purchase Completed",
            f"You bought {event.count} {artwork}" if erc1155 else f"You purchased {artwork}",
            listing_id=event.listing_id,
            metadata={"amount": str(event.amount), "count": event.count, "artworkName": artwork},
        )

        if erc1155:
            self._notify_low_stock(db, event, artwork)

    def _notify_low_stock(self, db: Session, event: Purchase, artwork: str) -> None:
        try:
            stock = self._indexer.listing_stock(event.listing_id)
        except IndexerError as e:
            logger.warning("Stock lookup for listing %s failed: %s", event.listing_id, e)
            return
        if stock is None or stock.remaining != 1:
            return
        seller = event.listing.seller
        try:
            favoriters = _favoriters(db, event.listing_id, {event.buyer.lower(), seller.lower()})
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Could not load favorites for listing %s: %s", event.listing_id, e)
            return
        if not favoriters:
            return
        seller_name = self._identity.display_name(db, seller)
        for user in favoriters:
            self._store.create_notification(
                db,
                user,
                NotificationType.FAVORITE_LOW_STOCK,
                "Low Stock Alert",
                f"Only one {artwork} by {seller_name} left!",
                listing_id=event.listing_id,
                metadata={"artworkName": artwork, "seller": seller, "remaining": 1},
            )

    # --- Finalized ---

    def on_finalized(self, db: Session, event: Finalized) -> None:
        artwork = self._identity.artwork_title(event.listing.token)
        winning = event.winning_bid
        if event.has_bid and winning is not None:
            winner_name = self._identity.display_name(db, winning.bidder)
            self._store.create_notification(
                db,
                winning.bidder,
                NotificationType.AUCTION_WON,
                "Auction Won",
                f"Auction {artwork} won by {winner_name} for {format_price(winning.amount, event.listing.erc20)}",
                listing_id=event.listing_id,
                metadata={"amount": str(winning.amount), "artworkName": artwork},
            )
            return
        self._store.create_notification(
            db,
            event.seller,
            NotificationType.AUCTION_ENDED_NO_BIDS,
            "Auction Ended",
            f"Auction for {artwork} ended without any bids",
            listing_id=event.listing_id,
            metadata={"artworkName": artwork},
        )

    # --- AuctionEnded (past end time, not finalized) ---

    def on_auction_ended(self, db: Session, event: AuctionEnded) -> None:
        artwork = self._identity.artwork_title(event.listing.token)
        winning = event.winning_bid
        if event.has_bid and winning is not None:
            price = format_price(winning.amount, event.listing.erc20)
            self._store.create_notification(
                db,
                winning.bidder,
                NotificationType.AUCTION_ENDED_WON,
                "Auction Ended - You Won!",
                f"Auction for {artwork} has ended. You won with a bid of {price}! Finalize to claim your NFT.",
                listing_id=event.listing_id,
                metadata={"amount": str(winning.amount), "artworkName": artwork},
            )
            winner_name = self._identity.display_name(db, winning.bidder)
            self._store.create_notification(
                db,
                event.seller,
                NotificationType.AUCTION_ENDED_READY_TO_FINALIZE,
                "Auction Ended - Ready to Finalize",
                f"Auction for {artwork} has ended. {winner_name} won with a bid of {price}. "
                "Finalize to complete the sale.",
                listing_id=event.listing_id,
                metadata={"winner": winning.bidder, "amount": str(winning.amount), "artworkName": artwork},
            )
            return
        self._store.create_notification(
            db,
            event.seller,
            NotificationType.AUCTION_ENDED_NO_BIDS,
            "Auction Ended",
            f"Auction for {artwork} has ended without any bids.",
            listing_id=event.listing_id,
            metadata={"artworkName": artwork},
        )
