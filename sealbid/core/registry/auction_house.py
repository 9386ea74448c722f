"""
Auction House - registry and router for sealed-bid auctions.

This module provides:
- Auction creation (asset minting, deterministic auction ids)
- Routing of bids, resolution and claims to the owning auction
- Payable semantics: funds sent with a call are escrowed before the
  auction sees them and returned if the auction rejects the call
- Listing by owner, bidder and asset

Each auction is its own SealedBidAuction instance; the house keeps only
an index and never shares auction state between them.
"""

import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from sealbid.core.auction.ledger import AuctionResult
from sealbid.core.auction.reveal import DecryptionClient, collect_revealed_bids
from sealbid.core.auction.state_machine import (
    AuctionError,
    AuctionState,
    OpResult,
    SealedBidAuction,
)
from sealbid.core.collaborators import AssetRegistry, BalanceBook, RevealOracle
from sealbid.core.config import AuctionConfig
from sealbid.crypto import shake128, short_hex
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import validate_amount

logger = get_logger("registry")


# =============================================================================
# Constants
# =============================================================================

# Domain separators for derived identifiers
DOMAIN_AUCTION_ID = b"sealbid/auction-id"
DOMAIN_ASSET_REF = b"sealbid/asset-ref"

MAX_NAME_LENGTH = 48


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class AuctionDetails:
    """
    Listing information for an auction.

    Attributes:
        name: Display name (at most 48 bytes)
        auction_id: Unique identifier
        asset_reference: Item being sold
        owner: Seller
        deposit: Minimum deposit per proposal
        deadline: Reveal slot
        published: Creation timestamp
        status: Current auction state
        bids: Number of participants
    """
    name: bytes
    auction_id: bytes
    asset_reference: bytes
    owner: bytes
    deposit: int
    deadline: int
    published: int
    status: AuctionState = AuctionState.BIDDING
    bids: int = 0


# =============================================================================
# Auction House
# =============================================================================


class AuctionHouse:
    """
    Registry of sealed-bid auctions keyed by auction id.
    """

    def __init__(
        self,
        oracle: RevealOracle,
        assets: Optional[AssetRegistry] = None,
        balances: Optional[BalanceBook] = None,
        config: Optional[AuctionConfig] = None,
    ):
        """
        Initialize the house.

        Args:
            oracle: Reveal-eligibility oracle shared by all auctions
            assets: Asset registry (new in-memory registry if None)
            balances: Balance book holding escrowed funds (new if None)
            config: Defaults and limits for new auctions
        """
        self.oracle = oracle
        self.assets = assets if assets is not None else AssetRegistry()
        self.balances = balances if balances is not None else BalanceBook()
        self.config = config or AuctionConfig()

        # auction_id -> auction
        self.auctions: Dict[bytes, SealedBidAuction] = {}
        self._details: Dict[bytes, AuctionDetails] = {}

        # bidder -> auction ids, in first-bid order
        self.bids_by_bidder: Dict[bytes, List[bytes]] = {}

        self._nonce = 0
        self._lock = threading.Lock()

        logger.info(f"AuctionHouse initialized with default deposit={self.config.minimum_deposit}")

    # =========================================================================
    # Identifiers
    # =========================================================================

    @staticmethod
    def compute_auction_id(owner: bytes, name: bytes, nonce: int) -> bytes:
        """auction_id = SHAKE128(domain || owner || name || nonce)"""
        return shake128(DOMAIN_AUCTION_ID + owner + name + nonce.to_bytes(8, "big"))

    @staticmethod
    def compute_asset_reference(auction_id: bytes) -> bytes:
        return shake128(DOMAIN_ASSET_REF + auction_id)

    # =========================================================================
    # Creation
    # =========================================================================

    def new_auction(
        self,
        owner: bytes,
        name: bytes,
        deadline: int,
        deposit: Optional[int] = None,
    ) -> Tuple[Optional[bytes], Optional[AuctionError]]:
        """
        Mint the asset for sale and open a new auction.

        Args:
            owner: Seller address
            name: Display name
            deadline: Reveal slot
            deposit: Minimum deposit (config default if None)

        Returns:
            (auction_id, error) - auction_id is None on failure
        """
        if len(name) > MAX_NAME_LENGTH:
            raise ValueError(f"Auction name exceeds {MAX_NAME_LENGTH} bytes")
        if deposit is None:
            deposit = self.config.minimum_deposit

        with self._lock:
            auction_id = self.compute_auction_id(owner, name, self._nonce)
            self._nonce += 1
            asset_reference = self.compute_asset_reference(auction_id)

            ok, err = self.assets.mint(asset_reference, owner)
            if not ok:
                logger.warning(f"Asset mint for auction {short_hex(auction_id)} failed: {err}")
                return None, AuctionError.ASSET_MINT_FAILED

            auction = SealedBidAuction(
                auction_id=auction_id,
                asset_reference=asset_reference,
                owner=owner,
                deadline=deadline,
                oracle=self.oracle,
                assets=self.assets,
                balances=self.balances,
                minimum_deposit=deposit,
                config=self.config,
            )
            self.auctions[auction_id] = auction
            self._details[auction_id] = AuctionDetails(
                name=name,
                auction_id=auction_id,
                asset_reference=asset_reference,
                owner=owner,
                deposit=deposit,
                deadline=deadline,
                published=int(time.time()),
            )

        logger.info(f"Auction created: {short_hex(auction_id)} by {short_hex(owner)}")
        return auction_id, None

    # =========================================================================
    # Routing
    # =========================================================================

    def get_auction(self, auction_id: bytes) -> Optional[SealedBidAuction]:
        return self.auctions.get(auction_id)

    def bid(
        self,
        auction_id: bytes,
        caller: bytes,
        ciphertext: bytes,
        nonce: bytes,
        capsule: bytes,
        commitment_digest: bytes,
        amount: int,
        signature: bytes = b"",
        public_key: Optional[bytes] = None,
    ) -> OpResult:
        """
        Escrow `amount` from the caller and submit a proposal.

        Returns:
            (success, error)
        """
        auction = self.auctions.get(auction_id)
        if auction is None:
            return False, AuctionError.AUCTION_DOES_NOT_EXIST

        valid, _ = validate_amount(amount)
        if not valid:
            return False, AuctionError.INVALID_PROPOSAL

        ok, err = self.balances.escrow(caller, amount)
        if not ok:
            logger.debug(f"Bid from {short_hex(caller)} rejected: {err}")
            return False, AuctionError.INSUFFICIENT_FUNDS

        ok, error = auction.submit_proposal(
            caller, ciphertext, nonce, capsule, commitment_digest, amount,
            signature=signature, public_key=public_key,
        )
        if not ok:
            self._return_funds(caller, amount)
            return False, error

        with self._lock:
            auctions = self.bids_by_bidder.setdefault(caller, [])
            if auction_id not in auctions:
                auctions.append(auction_id)
        return True, None

    def resolve(self, auction_id: bytes, revealed_bids: Mapping[bytes, int]) -> OpResult:
        """Resolve an auction with externally decrypted bids."""
        auction = self.auctions.get(auction_id)
        if auction is None:
            return False, AuctionError.AUCTION_DOES_NOT_EXIST
        return auction.resolve(revealed_bids)

    def reveal_and_resolve(
        self,
        auction_id: bytes,
        client: DecryptionClient,
        slot_secrets: Mapping[int, bytes],
    ) -> OpResult:
        """Open every proposal with the released slot secrets, then resolve."""
        auction = self.auctions.get(auction_id)
        if auction is None:
            return False, AuctionError.AUCTION_DOES_NOT_EXIST
        if not auction.is_deadline_reached():
            return False, AuctionError.AUCTION_IN_PROGRESS
        return auction.resolve(collect_revealed_bids(auction, client, slot_secrets))

    def claim(self, auction_id: bytes, caller: bytes, amount: int = 0) -> OpResult:
        """
        Escrow the payment (if any) and claim prize or refund.

        Returns:
            (success, error)
        """
        auction = self.auctions.get(auction_id)
        if auction is None:
            return False, AuctionError.AUCTION_DOES_NOT_EXIST

        valid, _ = validate_amount(amount)
        if not valid:
            return False, AuctionError.INVALID_CURRENCY_AMOUNT_TRANSFERRED

        if amount:
            ok, err = self.balances.escrow(caller, amount)
            if not ok:
                logger.debug(f"Claim from {short_hex(caller)} rejected: {err}")
                return False, AuctionError.INSUFFICIENT_FUNDS

        ok, error = auction.claim(caller, amount)
        if not ok and amount:
            self._return_funds(caller, amount)
        return ok, error

    def withdraw_proceeds(self, auction_id: bytes, caller: bytes) -> Tuple[int, Optional[AuctionError]]:
        auction = self.auctions.get(auction_id)
        if auction is None:
            return 0, AuctionError.AUCTION_DOES_NOT_EXIST
        return auction.withdraw_proceeds(caller)

    def _return_funds(self, caller: bytes, amount: int) -> None:
        ok, err = self.balances.transfer_balance(caller, amount)
        if not ok:
            # Reserve was credited a moment ago; failing here means the book is corrupt
            raise RuntimeError(f"Could not return escrowed funds to {short_hex(caller)}: {err}")

    # =========================================================================
    # Queries
    # =========================================================================

    def get_winner(self, auction_id: bytes) -> Tuple[Optional[AuctionResult], Optional[AuctionError]]:
        """
        Winner and debt of an auction.

        Returns:
            (result, error)
        """
        auction = self.auctions.get(auction_id)
        if auction is None:
            return None, AuctionError.AUCTION_DOES_NOT_EXIST
        result = auction.get_winner()
        if result is None:
            return None, AuctionError.NO_WINNER_DETERMINED
        return result, None

    def get_auction_details(self, auction_id: bytes) -> Optional[AuctionDetails]:
        details = self._details.get(auction_id)
        if details is None:
            return None
        auction = self.auctions[auction_id]
        details.status = auction.state
        details.bids = len(auction.get_participants())
        return details

    def get_auctions(self) -> List[AuctionDetails]:
        """All auctions in creation order."""
        return [self.get_auction_details(auction_id) for auction_id in self._details]

    def get_latest_auction(self) -> Optional[bytes]:
        if not self._details:
            return None
        return next(reversed(self._details))

    def get_auction_details_by_asset(self, asset_reference: bytes) -> Optional[AuctionDetails]:
        for auction_id, details in self._details.items():
            if details.asset_reference == asset_reference:
                return self.get_auction_details(auction_id)
        return None

    def get_auctions_by_owner(self, owner: bytes) -> List[AuctionDetails]:
        return [
            self.get_auction_details(auction_id)
            for auction_id, details in self._details.items()
            if details.owner == owner
        ]

    def get_auctions_by_bidder(self, bidder: bytes) -> List[AuctionDetails]:
        return [
            self.get_auction_details(auction_id)
            for auction_id in self.bids_by_bidder.get(bidder, [])
        ]

    def stats(self) -> dict:
        """Get house statistics."""
        by_state = {state.name: 0 for state in AuctionState}
        for auction in self.auctions.values():
            by_state[auction.state.name] += 1
        return {
            "total_auctions": len(self.auctions),
            "bidders": len(self.bids_by_bidder),
            "escrow_reserve": self.balances.reserve,
            **{f"auctions_{name.lower()}": count for name, count in by_state.items()},
        }


__all__ = [
    "AuctionHouse",
    "AuctionDetails",
    "DOMAIN_AUCTION_ID",
    "DOMAIN_ASSET_REF",
    "MAX_NAME_LENGTH",
]
