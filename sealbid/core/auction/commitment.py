"""
Bid commitments.

A commitment binds a hidden bid value to a digest published with the
sealed proposal:

    C = SHA3-256(ascii_decimal(value))

At resolution the revealed plaintext value must reproduce C exactly.
The decimal encoding is what the sealing client hashes, so commitments
computed here and there are interchangeable.

Plaintext bids travel inside the timelock ciphertext as 16-byte
little-endian u128 values (see encode_bid / decode_bid).
"""

from typing import Any

from sealbid.crypto import digests_equal, sha3_256
from sealbid.utils.validation import MAX_BID_VALUE, validate_bid_value

# Width of a serialized plaintext bid
BID_SIZE = 16


def _canonical(value: int) -> bytes:
    return str(value).encode("ascii")


def commit(value: int) -> bytes:
    """
    Compute the commitment digest for a bid value.

    Raises:
        ValueError: if value is not an integer in [0, 2**128)
    """
    valid, err = validate_bid_value(value)
    if not valid:
        raise ValueError(err)
    return sha3_256(_canonical(value))


def verify(value: Any, digest: bytes) -> bool:
    """Whether `value` reproduces `digest`. Never raises."""
    valid, _ = validate_bid_value(value)
    if not valid or not isinstance(digest, (bytes, bytearray)):
        return False
    return digests_equal(sha3_256(_canonical(value)), bytes(digest))


def encode_bid(value: int) -> bytes:
    """Serialize a bid as the sealing client does (u128, little-endian)."""
    valid, err = validate_bid_value(value)
    if not valid:
        raise ValueError(err)
    return value.to_bytes(BID_SIZE, byteorder="little")


def decode_bid(plaintext: bytes) -> int:
    """Inverse of encode_bid."""
    if len(plaintext) != BID_SIZE:
        raise ValueError(f"Plaintext bid must be {BID_SIZE} bytes, got {len(plaintext)}")
    return int.from_bytes(plaintext, byteorder="little")


__all__ = [
    "commit",
    "verify",
    "encode_bid",
    "decode_bid",
    "BID_SIZE",
    "MAX_BID_VALUE",
]
