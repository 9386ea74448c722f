"""
Auction Ledger - per-auction bookkeeping.

Holds everything an auction accumulates over its lifetime:

1. **Participant registry**: insertion-ordered, duplicate-free bidders.
   Registration order is the tie-break order at resolution.
2. **Proposal store**: live and failed sealed proposals.
3. **Revealed bids**: values that reproduced their commitment.
4. **Result**: winner and debt, set at most once.
5. **Escrow**: deposits superseded by re-submission, claim flags and the
   owner's accumulated proceeds.

The ledger enforces no protocol rules; the state machine does.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from sealbid.core.auction.proposal import Proposal, ProposalStore


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class RevealedBid:
    """A bid whose revealed value matched its commitment."""
    bidder: bytes
    value: int


@dataclass(frozen=True)
class AuctionResult:
    """
    The outcome of a resolved auction.

    Attributes:
        winner: Address of the highest valid bidder
        debt: Amount the winner pays (second-highest valid bid)
    """
    winner: bytes
    debt: int


# =============================================================================
# Ledger
# =============================================================================


class AuctionLedger:
    """Per-auction aggregate state."""

    def __init__(self):
        self.store = ProposalStore()

        self.participants: List[bytes] = []
        self._participant_set: Set[bytes] = set()

        # bidder -> value
        self.revealed_bids: Dict[bytes, int] = {}
        self.result: Optional[AuctionResult] = None

        # bidder -> deposits of superseded proposals still held in escrow
        self.escrow_credit: Dict[bytes, int] = {}
        self.claimed: Set[bytes] = set()
        self.proceeds: int = 0
        self.proceeds_withdrawn: int = 0

        self._sequence = 0

    # =========================================================================
    # Participants
    # =========================================================================

    def is_participant(self, bidder: bytes) -> bool:
        return bidder in self._participant_set

    def register(self, bidder: bytes) -> bool:
        """Append a bidder to the registry. Returns False if already present."""
        if bidder in self._participant_set:
            return False
        self.participants.append(bidder)
        self._participant_set.add(bidder)
        return True

    def participant_count(self) -> int:
        return len(self.participants)

    def next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    # =========================================================================
    # Proposals
    # =========================================================================

    def store_proposal(self, proposal: Proposal) -> None:
        """Register the bidder and store the proposal (last write wins)."""
        self.register(proposal.bidder)
        previous = self.store.put(proposal)
        if previous is not None:
            self.escrow_credit[proposal.bidder] = (
                self.escrow_credit.get(proposal.bidder, 0) + previous.deposit
            )

    def escrowed_total(self, bidder: bytes) -> int:
        """Everything held in escrow for a bidder (live or failed proposal plus credit)."""
        proposal = self.store.get(bidder) or self.store.get_failed(bidder)
        deposit = proposal.deposit if proposal is not None else 0
        return deposit + self.escrow_credit.get(bidder, 0)

    def total_escrow(self) -> int:
        """Total deposits not yet refunded or paid into proceeds."""
        return sum(
            self.escrowed_total(bidder)
            for bidder in self.participants
            if bidder not in self.claimed
        )

    # =========================================================================
    # Reveals and Result
    # =========================================================================

    def record_reveal(self, bidder: bytes, value: int) -> None:
        self.revealed_bids[bidder] = value

    def get_revealed_bids(self) -> List[RevealedBid]:
        """Revealed bids in registration order."""
        return [
            RevealedBid(bidder=bidder, value=self.revealed_bids[bidder])
            for bidder in self.participants
            if bidder in self.revealed_bids
        ]

    def set_result(self, result: AuctionResult) -> None:
        if self.result is not None:
            raise RuntimeError("Auction result already set")
        self.result = result

    def is_winner(self, bidder: bytes) -> bool:
        return self.result is not None and self.result.winner == bidder

    # =========================================================================
    # Claims
    # =========================================================================

    def has_claimed(self, bidder: bytes) -> bool:
        return bidder in self.claimed

    def mark_claimed(self, bidder: bytes) -> None:
        self.claimed.add(bidder)

    def add_proceeds(self, amount: int) -> None:
        self.proceeds += amount

    def withdrawable_proceeds(self) -> int:
        return self.proceeds - self.proceeds_withdrawn

    def stats(self) -> dict:
        """Get ledger statistics."""
        return {
            "participants": len(self.participants),
            "live_proposals": len(self.store),
            "failed_proposals": self.store.failed_count(),
            "revealed_bids": len(self.revealed_bids),
            "claimed": len(self.claimed),
            "escrow": self.total_escrow(),
            "proceeds": self.proceeds,
        }


__all__ = [
    "AuctionLedger",
    "AuctionResult",
    "RevealedBid",
]
