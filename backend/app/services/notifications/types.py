"""Notification kinds and which of them users/admins can switch off."""
from enum import Enum


class NotificationType(str, Enum):
    LISTING_CREATED = "LISTING_CREATED"
    NEW_BID = "NEW_BID"
    AUCTION_WON = "AUCTION_WON"
    AUCTION_ENDED_NO_BIDS = "AUCTION_ENDED_NO_BIDS"
    AUCTION_ENDED_WON = "AUCTION_ENDED_WON"
    AUCTION_ENDED_READY_TO_FINALIZE = "AUCTION_ENDED_READY_TO_FINALIZE"
    BUY_NOW_SALE = "BUY_NOW_SALE"
    NEW_OFFER = "NEW_OFFER"
    BID_PLACED = "BID_PLACED"
    OUTBID = "OUTBID"
    ERC1155_PURCHASE = "ERC1155_PURCHASE"
    ERC721_PURCHASE = "ERC721_PURCHASE"
    OFFER_ACCEPTED = "OFFER_ACCEPTED"
    OFFER_RESCINDED = "OFFER_RESCINDED"
    LISTING_CANCELLED = "LISTING_CANCELLED"
    LISTING_MODIFIED = "LISTING_MODIFIED"
    FOLLOWED_USER_NEW_LISTING = "FOLLOWED_USER_NEW_LISTING"
    FAVORITE_NEW_BID = "FAVORITE_NEW_BID"
    FAVORITE_LOW_STOCK = "FAVORITE_LOW_STOCK"
    FAVORITE_ENDING_SOON = "FAVORITE_ENDING_SOON"


# Column names shared by user_notification_preferences and global_notification_settings
PREFERENCE_KEYS: tuple[str, ...] = (
    "new_bid_on_your_auction",
    "auction_ending_24h",
    "auction_ending_1h",
    "offer_received",
    "outbid",
    "auction_won",
    "purchase_confirmation",
    "offer_accepted",
    "offer_rejected",
)

# Kinds absent from this map are not toggleable
PREFERENCE_KEY_BY_TYPE: dict[NotificationType, str] = {
    NotificationType.NEW_BID: "new_bid_on_your_auction",
    NotificationType.AUCTION_WON: "auction_won",
    NotificationType.AUCTION_ENDED_WON: "auction_won",
    NotificationType.NEW_OFFER: "offer_received",
    NotificationType.OUTBID: "outbid",
    NotificationType.ERC1155_PURCHASE: "purchase_confirmation",
    NotificationType.ERC721_PURCHASE: "purchase_confirmation",
    NotificationType.OFFER_ACCEPTED: "offer_accepted",
    NotificationType.OFFER_RESCINDED: "offer_rejected",
}


def preference_key_for(type_: NotificationType | str) -> str | None:
    """Preference column for this kind, or None when users cannot switch it off."""
    try:
        return PREFERENCE_KEY_BY_TYPE.get(NotificationType(type_))
    except ValueError:
        return None
