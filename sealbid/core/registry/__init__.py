"""
sealbid Auction Registry Module.

Creates auctions and routes calls to them by auction id.
"""

from sealbid.core.registry.auction_house import (
    AuctionHouse,
    AuctionDetails,
    MAX_NAME_LENGTH,
)

__all__ = [
    "AuctionHouse",
    "AuctionDetails",
    "MAX_NAME_LENGTH",
]
