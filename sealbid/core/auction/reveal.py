"""
Reveal collection - the boundary to the timelock decryption client.

After the deadline slot, the secrets for that slot become public and
every sealed proposal can be opened off-chain. This module turns the
opened proposals into the bidder -> value mapping that
SealedBidAuction.resolve() verifies against the commitments.

The auction never decrypts anything itself. AesSlotClient is a
stand-in for the identity-based timelock construction: it seals a bid
under a fresh AES-GCM session key and wraps that key under a key
derived from the slot secret, so the bid only opens once the slot
secret is known. It is what the CLI demo and the tests use.
"""

import secrets as _secrets
from typing import Dict, Iterable, Mapping, Protocol, Tuple

from Crypto.Cipher import AES

from sealbid.core.auction.commitment import decode_bid, encode_bid
from sealbid.crypto import shake128, short_hex
from sealbid.utils.logger import get_logger

logger = get_logger("reveal")

NONCE_SIZE = 12
TAG_SIZE = 16
KEY_SIZE = 32
SLOT_SIZE = 8


class DecryptionClient(Protocol):
    """Opens a sealed proposal given the released slot secrets."""

    def decrypt(
        self,
        ciphertext: bytes,
        nonce: bytes,
        capsule: bytes,
        slot_secrets: Mapping[int, bytes],
    ) -> bytes:
        """Return the plaintext or raise ValueError."""
        ...


# =============================================================================
# Reveal Helpers
# =============================================================================


def reveal_mapping(pairs: Iterable[Tuple[bytes, int]]) -> Dict[bytes, int]:
    """
    Build a resolve() input from (bidder, value) pairs.

    Raises:
        ValueError: if a bidder appears more than once
    """
    revealed: Dict[bytes, int] = {}
    for bidder, value in pairs:
        if bidder in revealed:
            raise ValueError(f"Duplicate reveal for bidder {short_hex(bidder)}")
        revealed[bidder] = value
    return revealed


def collect_revealed_bids(
    auction,
    client: DecryptionClient,
    slot_secrets: Mapping[int, bytes],
) -> Dict[bytes, int]:
    """
    Decrypt every live proposal of an auction.

    Proposals that cannot be opened or do not hold a well-formed bid are
    left out; their bidders simply never reveal.

    Args:
        auction: SealedBidAuction past its deadline
        client: Decryption client
        slot_secrets: slot -> released secret

    Returns:
        bidder -> value, in registration order
    """
    revealed: Dict[bytes, int] = {}
    for bidder in auction.get_participants():
        proposal = auction.get_proposal(bidder)
        if proposal is None:
            continue
        try:
            plaintext = client.decrypt(
                proposal.ciphertext, proposal.nonce, proposal.capsule, slot_secrets
            )
            revealed[bidder] = decode_bid(plaintext)
        except ValueError as exc:
            logger.warning(f"Could not open proposal from {short_hex(bidder)}: {exc}")
    logger.debug(f"Opened {len(revealed)} of {len(auction.get_participants())} proposals")
    return revealed


# =============================================================================
# AES Slot Client
# =============================================================================


def derive_slot_key(slot_secret: bytes, slot: int) -> bytes:
    """Key-encryption key for a slot."""
    return shake128(b"sealbid/slot-key" + slot.to_bytes(SLOT_SIZE, "big") + slot_secret, KEY_SIZE)


class AesSlotClient:
    """Seals bids so that they open with the secret of a given slot."""

    def seal(self, value: int, slot: int, slot_secret: bytes) -> Tuple[bytes, bytes, bytes]:
        """
        Encrypt a bid for a slot.

        Returns:
            (ciphertext, nonce, capsule)
        """
        session_key = _secrets.token_bytes(KEY_SIZE)
        nonce = _secrets.token_bytes(NONCE_SIZE)
        cipher = AES.new(session_key, AES.MODE_GCM, nonce=nonce)
        ct, tag = cipher.encrypt_and_digest(encode_bid(value))

        capsule_nonce = _secrets.token_bytes(NONCE_SIZE)
        wrap = AES.new(derive_slot_key(slot_secret, slot), AES.MODE_GCM, nonce=capsule_nonce)
        wrapped_key, wrap_tag = wrap.encrypt_and_digest(session_key)

        capsule = slot.to_bytes(SLOT_SIZE, "big") + capsule_nonce + wrapped_key + wrap_tag
        return ct + tag, nonce, capsule

    def decrypt(
        self,
        ciphertext: bytes,
        nonce: bytes,
        capsule: bytes,
        slot_secrets: Mapping[int, bytes],
    ) -> bytes:
        if len(capsule) != SLOT_SIZE + NONCE_SIZE + KEY_SIZE + TAG_SIZE:
            raise ValueError("Malformed capsule")
        if len(ciphertext) < TAG_SIZE:
            raise ValueError("Ciphertext too short")

        slot = int.from_bytes(capsule[:SLOT_SIZE], "big")
        slot_secret = slot_secrets.get(slot)
        if slot_secret is None:
            raise ValueError(f"No secret released for slot {slot}")

        offset = SLOT_SIZE
        capsule_nonce = capsule[offset:offset + NONCE_SIZE]
        offset += NONCE_SIZE
        wrapped_key = capsule[offset:offset + KEY_SIZE]
        wrap_tag = capsule[offset + KEY_SIZE:]

        unwrap = AES.new(derive_slot_key(slot_secret, slot), AES.MODE_GCM, nonce=capsule_nonce)
        session_key = unwrap.decrypt_and_verify(wrapped_key, wrap_tag)

        cipher = AES.new(session_key, AES.MODE_GCM, nonce=nonce)
        return cipher.decrypt_and_verify(ciphertext[:-TAG_SIZE], ciphertext[-TAG_SIZE:])


__all__ = [
    "DecryptionClient",
    "AesSlotClient",
    "collect_revealed_bids",
    "reveal_mapping",
    "derive_slot_key",
]
