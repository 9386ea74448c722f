"""
sealbid Auction Module.

This module provides the sealed-bid auction core:
- Bid commitments
- Proposal storage and per-auction ledger
- The bidding / resolution / claim state machine
- Reveal collection from the decryption client
"""

from sealbid.core.auction.commitment import (
    commit,
    verify,
    encode_bid,
    decode_bid,
    BID_SIZE,
    MAX_BID_VALUE,
)

from sealbid.core.auction.proposal import (
    Proposal,
    ProposalStore,
)

from sealbid.core.auction.ledger import (
    AuctionLedger,
    AuctionResult,
    RevealedBid,
)

from sealbid.core.auction.state_machine import (
    SealedBidAuction,
    AuctionState,
    AuctionError,
    AuctionEvent,
)

from sealbid.core.auction.reveal import (
    DecryptionClient,
    AesSlotClient,
    collect_revealed_bids,
    reveal_mapping,
)

__all__ = [
    # Commitments
    "commit",
    "verify",
    "encode_bid",
    "decode_bid",
    "BID_SIZE",
    "MAX_BID_VALUE",
    # Storage
    "Proposal",
    "ProposalStore",
    "AuctionLedger",
    "AuctionResult",
    "RevealedBid",
    # State machine
    "SealedBidAuction",
    "AuctionState",
    "AuctionError",
    "AuctionEvent",
    # Reveal
    "DecryptionClient",
    "AesSlotClient",
    "collect_revealed_bids",
    "reveal_mapping",
]
