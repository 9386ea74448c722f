"""
Sealed-Bid Auction - time-locked second-price (Vickrey) auction.

This module implements the auction protocol:
1. Bidding: participants submit timelock-encrypted proposals with a
   commitment to the bid value and an escrowed deposit
2. Resolution: once the deadline slot has passed, the externally
   decrypted bids are checked against their commitments and the winner
   is computed; the winner pays the second-highest valid bid
3. Claims: the winner pays and receives the asset, every other
   participant gets their deposit back

State machine:

    BIDDING --resolve--> RESOLVED --winner claims--> CLAIMED

Losers may claim refunds in RESOLVED or CLAIMED. Every operation is
all-or-nothing and returns (success, error).
"""

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Tuple

from sealbid.core.auction import commitment
from sealbid.core.auction.ledger import AuctionLedger, AuctionResult, RevealedBid
from sealbid.core.auction.proposal import Proposal
from sealbid.core.collaborators import AssetTransfer, BalanceTransfer, RevealOracle
from sealbid.core.config import AuctionConfig
from sealbid.crypto import short_hex
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import validate_address, validate_amount, validate_bid_value

logger = get_logger("auction")


# =============================================================================
# Enums
# =============================================================================


class AuctionState(IntEnum):
    """State of a sealed-bid auction."""
    BIDDING = 0    # Accepting proposals until the deadline slot
    RESOLVED = 1   # Winner (if any) computed, claims open
    CLAIMED = 2    # Winner has paid and received the asset


class AuctionError(IntEnum):
    """Reasons an auction operation was rejected."""
    # Validation
    DEPOSIT_TOO_LOW = 1
    AUCTION_ALREADY_COMPLETE = 2
    AUCTION_IN_PROGRESS = 3
    INVALID_CURRENCY_AMOUNT_TRANSFERRED = 4
    INVALID_PROPOSAL = 5
    INVALID_SIGNATURE = 6
    INVALID_REVEALED_BID = 7
    TOO_MANY_PARTICIPANTS = 8
    # Lifecycle
    ALREADY_RESOLVED = 10
    AUCTION_NOT_RESOLVED = 11
    ALREADY_CLAIMED = 12
    NOT_PARTICIPANT = 13
    NOT_AUCTION_OWNER = 15
    NO_PROCEEDS = 16
    # Collaborators
    ASSET_TRANSFER_FAILED = 20
    BALANCE_TRANSFER_FAILED = 21
    ASSET_MINT_FAILED = 22
    INSUFFICIENT_FUNDS = 23
    # Registry
    AUCTION_DOES_NOT_EXIST = 30
    NO_WINNER_DETERMINED = 31


OpResult = Tuple[bool, Optional[AuctionError]]

OK: OpResult = (True, None)


@dataclass(frozen=True)
class AuctionEvent:
    """An auditable record of something that happened in the auction."""
    kind: str
    account: bytes = b""
    amount: int = 0
    winner: bool = False


# =============================================================================
# Sealed-Bid Auction
# =============================================================================


class SealedBidAuction:
    """
    A single time-locked Vickrey auction.

    Owns its ledger exclusively; all state changes happen under one lock.
    """

    def __init__(
        self,
        auction_id: bytes,
        asset_reference: bytes,
        owner: bytes,
        deadline: int,
        oracle: RevealOracle,
        assets: AssetTransfer,
        balances: BalanceTransfer,
        minimum_deposit: Optional[int] = None,
        config: Optional[AuctionConfig] = None,
    ):
        """
        Create an auction in the BIDDING state.

        Args:
            auction_id: Identifier of this auction (signature domain)
            asset_reference: The item being sold
            owner: Seller; current asset owner and recipient of proceeds
            deadline: Slot after which bids can be revealed
            oracle: Reveal-eligibility oracle
            assets: Asset transfer service
            balances: Payout service for refunds and proceeds
            minimum_deposit: Deposit required per proposal (config default if None)
            config: Operational limits
        """
        self.config = config or AuctionConfig()
        if minimum_deposit is None:
            minimum_deposit = self.config.minimum_deposit
        valid, err = validate_amount(minimum_deposit, "minimum_deposit")
        if not valid:
            raise ValueError(err)
        if deadline < 0:
            raise ValueError(f"deadline must be >= 0, got {deadline}")

        self.auction_id = auction_id
        self.asset_reference = asset_reference
        self.owner = owner
        self.minimum_deposit = minimum_deposit
        self.deadline = deadline

        self.oracle = oracle
        self.assets = assets
        self.balances = balances

        self.state = AuctionState.BIDDING
        self.ledger = AuctionLedger()
        self.events: List[AuctionEvent] = []

        self._lock = threading.RLock()

        logger.info(f"Auction {short_hex(auction_id)} created: asset={short_hex(asset_reference)}, "
                    f"min_deposit={minimum_deposit}, deadline slot {deadline}")

    def is_deadline_reached(self) -> bool:
        return self.oracle.is_deadline_reached(self.deadline)

    def _emit(self, kind: str, account: bytes = b"", amount: int = 0, winner: bool = False) -> None:
        self.events.append(AuctionEvent(kind=kind, account=account, amount=amount, winner=winner))

    # =========================================================================
    # Bidding
    # =========================================================================

    def submit_proposal(
        self,
        caller: bytes,
        ciphertext: bytes,
        nonce: bytes,
        capsule: bytes,
        commitment_digest: bytes,
        escrowed_amount: int,
        signature: bytes = b"",
        public_key: Optional[bytes] = None,
    ) -> OpResult:
        """
        Submit (or replace) the caller's sealed proposal.

        Args:
            caller: Bidder address
            ciphertext: Timelock ciphertext of the bid
            nonce: AES nonce
            capsule: IBE capsule
            commitment_digest: Commitment to the bid value
            escrowed_amount: Deposit escrowed with this call
            signature: Optional signature over the proposal
            public_key: When given, the signature must verify against it

        Returns:
            (success, error)
        """
        with self._lock:
            if self.state != AuctionState.BIDDING:
                return False, AuctionError.AUCTION_ALREADY_COMPLETE

            valid, err = validate_amount(escrowed_amount, "escrowed_amount")
            if not valid:
                logger.debug(f"Rejected proposal: {err}")
                return False, AuctionError.INVALID_PROPOSAL

            if escrowed_amount < self.minimum_deposit:
                return False, AuctionError.DEPOSIT_TOO_LOW

            # Late proposals are rejected, never queued
            if self.is_deadline_reached():
                return False, AuctionError.AUCTION_ALREADY_COMPLETE

            if (not self.ledger.is_participant(caller)
                    and self.ledger.participant_count() >= self.config.max_participants):
                return False, AuctionError.TOO_MANY_PARTICIPANTS

            try:
                proposal = Proposal(
                    bidder=caller,
                    deposit=escrowed_amount,
                    ciphertext=ciphertext,
                    nonce=nonce,
                    capsule=capsule,
                    commitment=commitment_digest,
                    signature=signature,
                    max_blob_size=self.config.max_blob_size,
                )
            except ValueError as exc:
                logger.debug(f"Rejected proposal from {short_hex(caller)}: {exc}")
                return False, AuctionError.INVALID_PROPOSAL

            if public_key is not None and not proposal.verify_signature(public_key, self.auction_id):
                return False, AuctionError.INVALID_SIGNATURE

            proposal.sequence = self.ledger.next_sequence()
            replaced = caller in self.ledger.store
            self.ledger.store_proposal(proposal)
            self._emit("proposal_success", caller, escrowed_amount)

            logger.debug(f"{'Replaced' if replaced else 'Received'} proposal from {short_hex(caller)} "
                         f"for auction {short_hex(self.auction_id)}, deposit={escrowed_amount}")
            return OK

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve(self, revealed_bids: Mapping) -> OpResult:
        """
        Verify revealed bids and determine the winner.

        Participants are visited in registration order. A value that does
        not reproduce its commitment moves the proposal to the failed map;
        it never aborts the resolution. Highest and second-highest use
        strict comparison, so the earliest registrant wins a tie.

        Args:
            revealed_bids: bidder -> decrypted bid value

        Returns:
            (success, error)
        """
        with self._lock:
            if not self.is_deadline_reached():
                return False, AuctionError.AUCTION_IN_PROGRESS

            if self.state != AuctionState.BIDDING:
                return False, AuctionError.ALREADY_RESOLVED

            if not isinstance(revealed_bids, Mapping):
                return False, AuctionError.INVALID_REVEALED_BID

            for bidder, value in revealed_bids.items():
                valid, err = validate_address(bidder, "bidder")
                if valid:
                    valid, err = validate_bid_value(value)
                if not valid:
                    logger.warning(f"Rejected reveal batch: {err}")
                    return False, AuctionError.INVALID_REVEALED_BID

            highest_bid = 0
            second_highest_bid = 0
            winning_index: Optional[int] = None
            failed: List[bytes] = []

            for idx, bidder in enumerate(self.ledger.participants):
                if bidder not in revealed_bids:
                    continue
                proposal = self.ledger.store.get(bidder)
                if proposal is None:
                    continue

                value = revealed_bids[bidder]
                if not commitment.verify(value, proposal.commitment):
                    failed.append(bidder)
                    continue

                self.ledger.record_reveal(bidder, value)
                if winning_index is None or value > highest_bid:
                    if winning_index is not None:
                        second_highest_bid = highest_bid
                    highest_bid = value
                    winning_index = idx
                elif value > second_highest_bid:
                    second_highest_bid = value

            for bidder in failed:
                self.ledger.store.mark_failed(bidder)
                logger.warning(f"Reveal from {short_hex(bidder)} does not match its commitment")

            if winning_index is not None:
                winner = self.ledger.participants[winning_index]
                self.ledger.set_result(AuctionResult(winner=winner, debt=second_highest_bid))
                logger.info(f"Auction {short_hex(self.auction_id)} resolved: winner={short_hex(winner)}, "
                            f"bid={highest_bid}, debt={second_highest_bid}")
            else:
                logger.info(f"Auction {short_hex(self.auction_id)} resolved without a valid reveal")

            self.state = AuctionState.RESOLVED
            self._emit("auction_resolved")
            return OK

    # =========================================================================
    # Claims
    # =========================================================================

    def claim(self, caller: bytes, transferred_amount: int = 0) -> OpResult:
        """
        Claim the asset (winner) or the deposit refund (everyone else).

        The winner must transfer exactly the debt. Their deposit is
        forfeited to the owner together with the payment.

        Args:
            caller: Claiming participant
            transferred_amount: Payment sent with the call

        Returns:
            (success, error)
        """
        with self._lock:
            if not self.is_deadline_reached():
                return False, AuctionError.AUCTION_IN_PROGRESS

            if self.state == AuctionState.BIDDING:
                return False, AuctionError.AUCTION_NOT_RESOLVED

            if not self.ledger.is_participant(caller):
                return False, AuctionError.NOT_PARTICIPANT

            if self.ledger.has_claimed(caller):
                return False, AuctionError.ALREADY_CLAIMED

            if self.ledger.is_winner(caller):
                return self._claim_as_winner(caller, transferred_amount)
            return self._claim_refund(caller)

    def _claim_as_winner(self, caller: bytes, transferred_amount: int) -> OpResult:
        debt = self.ledger.result.debt
        if transferred_amount != debt:
            return False, AuctionError.INVALID_CURRENCY_AMOUNT_TRANSFERRED

        ok, err = self.assets.transfer(self.asset_reference, self.owner, caller)
        if not ok:
            logger.warning(f"Asset transfer to winner {short_hex(caller)} failed: {err}")
            return False, AuctionError.ASSET_TRANSFER_FAILED

        forfeited = self.ledger.escrowed_total(caller)
        self.ledger.mark_claimed(caller)
        self.ledger.add_proceeds(debt + forfeited)
        self.state = AuctionState.CLAIMED
        self._emit("bid_complete", caller, debt, winner=True)

        logger.info(f"Winner {short_hex(caller)} claimed asset {short_hex(self.asset_reference)}, "
                    f"paid {debt}, deposit {forfeited} forfeited")
        return OK

    def _claim_refund(self, caller: bytes) -> OpResult:
        amount = self.ledger.escrowed_total(caller)
        ok, err = self.balances.transfer_balance(caller, amount)
        if not ok:
            logger.warning(f"Refund of {amount} to {short_hex(caller)} failed: {err}")
            return False, AuctionError.BALANCE_TRANSFER_FAILED

        self.ledger.mark_claimed(caller)
        self._emit("bid_complete", caller, amount, winner=False)

        logger.debug(f"Refunded {amount} to {short_hex(caller)}")
        return OK

    def withdraw_proceeds(self, caller: bytes) -> Tuple[int, Optional[AuctionError]]:
        """
        Pay the owner everything accumulated so far.

        Returns:
            (amount_paid, error)
        """
        with self._lock:
            if caller != self.owner:
                return 0, AuctionError.NOT_AUCTION_OWNER

            amount = self.ledger.withdrawable_proceeds()
            if amount == 0:
                return 0, AuctionError.NO_PROCEEDS

            ok, err = self.balances.transfer_balance(caller, amount)
            if not ok:
                logger.warning(f"Proceeds withdrawal of {amount} failed: {err}")
                return 0, AuctionError.BALANCE_TRANSFER_FAILED

            self.ledger.proceeds_withdrawn += amount
            self._emit("proceeds_withdrawn", caller, amount)
            logger.info(f"Owner {short_hex(caller)} withdrew {amount} from auction {short_hex(self.auction_id)}")
            return amount, None

    # =========================================================================
    # Queries
    # =========================================================================

    def get_proposal(self, bidder: bytes) -> Optional[Proposal]:
        return self.ledger.store.get(bidder)

    def get_failed_proposal(self, bidder: bytes) -> Optional[Proposal]:
        return self.ledger.store.get_failed(bidder)

    def get_participants(self) -> List[bytes]:
        """Participants in registration order."""
        return list(self.ledger.participants)

    def get_revealed_bid(self, bidder: bytes) -> Optional[int]:
        return self.ledger.revealed_bids.get(bidder)

    def get_revealed_bids(self) -> List[RevealedBid]:
        return self.ledger.get_revealed_bids()

    def get_winner(self) -> Optional[AuctionResult]:
        return self.ledger.result

    def has_claimed(self, bidder: bytes) -> bool:
        return self.ledger.has_claimed(bidder)

    def get_proceeds(self) -> int:
        """Proceeds accumulated for the owner and not yet withdrawn."""
        return self.ledger.withdrawable_proceeds()

    def is_active(self) -> bool:
        """Whether proposals are still accepted."""
        return self.state == AuctionState.BIDDING and not self.is_deadline_reached()

    def stats(self) -> dict:
        """Get auction statistics."""
        with self._lock:
            stats = self.ledger.stats()
            stats.update({
                "state": self.state.name,
                "deadline": self.deadline,
                "minimum_deposit": self.minimum_deposit,
            })
            return stats


__all__ = [
    "SealedBidAuction",
    "AuctionState",
    "AuctionError",
    "AuctionEvent",
    "OpResult",
]
