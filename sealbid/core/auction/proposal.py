"""
Sealed proposals and their storage.

A proposal is a timelocked bid: the bid value is encrypted by the
external timelock client (ciphertext, nonce, capsule) and bound by a
commitment that the revealed value must later reproduce. The auction
never looks inside the encrypted blobs.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple

from sealbid.crypto import (
    address_from_public_key,
    sha3_256,
    sign,
    verify,
)
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import (
    MAX_BLOB_SIZE,
    validate_address,
    validate_amount,
    validate_blob,
    validate_digest,
    validate_signature,
)

logger = get_logger("proposal")

# Domain separator for proposal signatures
DOMAIN_PROPOSAL = b"sealbid/proposal/v1"


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class Proposal:
    """
    A participant's sealed bid.

    Attributes:
        bidder: 20-byte address of the participant
        deposit: Amount escrowed with the proposal
        ciphertext: AES ciphertext of the bid (opaque)
        nonce: AES nonce (opaque)
        capsule: IBE-encrypted key material (opaque)
        commitment: SHA3-256 commitment to the bid value
        signature: Optional bidder signature over signing_digest()
        sequence: Submission order within the auction
    """
    bidder: bytes
    deposit: int
    ciphertext: bytes
    nonce: bytes
    capsule: bytes
    commitment: bytes
    signature: bytes = b""
    sequence: int = 0
    max_blob_size: int = field(default=MAX_BLOB_SIZE, repr=False, compare=False)

    def __post_init__(self):
        checks = (
            validate_address(self.bidder, "bidder"),
            validate_amount(self.deposit, "deposit"),
            validate_blob(self.ciphertext, "ciphertext", self.max_blob_size),
            validate_blob(self.nonce, "nonce", self.max_blob_size),
            validate_blob(self.capsule, "capsule", self.max_blob_size),
            validate_digest(self.commitment, "commitment"),
            validate_signature(self.signature),
        )
        for valid, err in checks:
            if not valid:
                raise ValueError(err)

    def to_bytes(self, auction_id: bytes = b"") -> bytes:
        """Serialize for signing. Blobs are hashed to keep the message fixed-size."""
        return (
            DOMAIN_PROPOSAL +
            sha3_256(auction_id) +
            self.bidder +
            self.deposit.to_bytes(16, "big") +
            sha3_256(self.ciphertext) +
            sha3_256(self.nonce) +
            sha3_256(self.capsule) +
            self.commitment
        )

    def signing_digest(self, auction_id: bytes = b"") -> bytes:
        return sha3_256(self.to_bytes(auction_id))

    def sign(self, private_key: bytes, auction_id: bytes = b"") -> None:
        """Sign the proposal."""
        self.signature = sign(self.signing_digest(auction_id), private_key)

    def verify_signature(self, public_key: bytes, auction_id: bytes = b"") -> bool:
        """Check the signature and that the key belongs to the bidder."""
        if not self.signature:
            return False
        if address_from_public_key(public_key) != self.bidder:
            return False
        return verify(self.signing_digest(auction_id), self.signature, public_key)


# =============================================================================
# Proposal Store
# =============================================================================


class ProposalStore:
    """
    Keyed storage of one live proposal per bidder.

    Proposals whose reveal failed verification are moved to a separate
    failed map and kept for auditing.
    """

    def __init__(self):
        # bidder -> Proposal
        self.proposals: Dict[bytes, Proposal] = {}
        self.failed_proposals: Dict[bytes, Proposal] = {}

    def put(self, proposal: Proposal) -> Optional[Proposal]:
        """
        Store a proposal, replacing any live one from the same bidder.

        Returns:
            The superseded proposal, if any
        """
        previous = self.proposals.get(proposal.bidder)
        self.proposals[proposal.bidder] = proposal
        return previous

    def get(self, bidder: bytes) -> Optional[Proposal]:
        return self.proposals.get(bidder)

    def get_failed(self, bidder: bytes) -> Optional[Proposal]:
        return self.failed_proposals.get(bidder)

    def mark_failed(self, bidder: bytes) -> Tuple[bool, str]:
        """
        Move a live proposal to the failed map.

        Returns:
            (success, error_message)
        """
        proposal = self.proposals.pop(bidder, None)
        if proposal is None:
            return False, "No live proposal for bidder"
        self.failed_proposals[bidder] = proposal
        logger.debug(f"Proposal from {bidder.hex()[:8]} marked failed")
        return True, ""

    def __contains__(self, bidder: bytes) -> bool:
        return bidder in self.proposals

    def __len__(self) -> int:
        return len(self.proposals)

    def __iter__(self) -> Iterator[Proposal]:
        return iter(self.proposals.values())

    def failed_count(self) -> int:
        return len(self.failed_proposals)


__all__ = [
    "Proposal",
    "ProposalStore",
    "DOMAIN_PROPOSAL",
]
