"""Human-readable amounts, currencies and listing types for notification text."""
from decimal import ROUND_HALF_UP, Decimal

from app.core.constants import DEFAULT_TOKEN_DECIMALS, ZERO_ADDRESS
from app.services.identity.cache import short_address

_TWO_PLACES = Decimal("0.01")


def format_amount(amount: int, decimals: int = DEFAULT_TOKEN_DECIMALS) -> str:
    """Smallest-unit integer -> '1.5', '0.25', '3' (two decimals, half-up, trailing zeros dropped)."""
    value = (Decimal(int(amount)) / (Decimal(10) ** decimals)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def is_native_currency(erc20: str | None) -> bool:
    return not erc20 or erc20.lower() == ZERO_ADDRESS


def currency_symbol(erc20: str | None) -> str:
    """ETH for native listings; ERC-20 listings show the token contract (symbol lookup needs an RPC call)."""
    if is_native_currency(erc20):
        return "ETH"
    return short_address(erc20)


def format_price(amount: int, erc20: str | None) -> str:
    return f"{format_amount(amount)} {currency_symbol(erc20)}"


def format_listing_type(listing_type: str) -> str:
    """'FIXED_PRICE' -> 'fixed price'"""
    return str(listing_type).replace("_", " ").lower()
