"""
Cryptographic primitives for sealbid.

This module provides:
- Hashing functions (SHA3-256, Keccak-256, SHAKE128)
- Key generation and bidder addresses
- Digital signatures (ECDSA on secp256k1)

Design Notes:
-------------
Bid commitments are SHA3-256 digests, matching the digests produced by the
timelock encryption client that seals the bids.

Keccak-256 derives 20-byte bidder addresses from secp256k1 public keys
(Ethereum convention). SHAKE128 is used as an extendable-output function for
deterministic identifiers (auction ids, asset references).

The timelock encryption itself (AES + identity based encryption) lives in the
external client; nothing in this package decrypts.
"""

import hmac
import secrets
from dataclasses import dataclass
from typing import Optional

from Crypto.Hash import SHA3_256, SHAKE128, keccak
from py_ecc.secp256k1 import secp256k1


# =============================================================================
# Constants
# =============================================================================

# secp256k1 curve order (number of points on the curve)
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

ADDRESS_SIZE = 20
DIGEST_SIZE = 32


# =============================================================================
# Hashing
# =============================================================================


def sha3_256(data: bytes) -> bytes:
    """
    Compute SHA3-256 hash.

    Used for: bid commitments, proposal signing digests.
    """
    return SHA3_256.new(data).digest()


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: address derivation.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def shake128(data: bytes, length: int = DIGEST_SIZE) -> bytes:
    """
    Read `length` bytes from SHAKE128(data).

    Used for: auction ids and asset references derived from seeds.
    """
    return SHAKE128.new(data).read(length)


def digests_equal(a: bytes, b: bytes) -> bool:
    """Constant-time comparison of two digests."""
    return hmac.compare_digest(a, b)


# =============================================================================
# Key Generation
# =============================================================================


@dataclass
class KeyPair:
    """
    An ECDSA keypair on secp256k1.

    Attributes:
        private_key: 32-byte secret key
        public_key: 64-byte uncompressed public key (x || y coordinates)
    """
    private_key: bytes
    public_key: bytes

    @property
    def address(self) -> bytes:
        """20-byte bidder address derived from the public key."""
        return address_from_public_key(self.public_key)

    @property
    def address_hex(self) -> str:
        return bytes_to_hex(self.address)


def generate_keypair() -> KeyPair:
    """Generate a new random keypair."""
    private_key_int = secrets.randbelow(SECP256K1_ORDER - 1) + 1
    private_key = private_key_int.to_bytes(32, byteorder="big")
    return KeyPair(private_key=private_key, public_key=private_key_to_public_key(private_key))


def private_key_to_public_key(private_key: bytes) -> bytes:
    """
    Derive public key from private key.

    Args:
        private_key: 32-byte private key

    Returns:
        64-byte uncompressed public key
    """
    if len(private_key) != 32:
        raise ValueError("Private key must be 32 bytes")

    point = secp256k1.privtopub(private_key)
    return point[0].to_bytes(32, byteorder="big") + point[1].to_bytes(32, byteorder="big")


def address_from_public_key(public_key: bytes) -> bytes:
    """
    Derive a bidder address from a public key.

    address = keccak256(public_key)[-20:]
    """
    if len(public_key) != 64:
        raise ValueError("Public key must be 64 bytes")
    return keccak256(public_key)[-ADDRESS_SIZE:]


# =============================================================================
# Digital Signatures (ECDSA)
# =============================================================================


def sign(message_hash: bytes, private_key: bytes) -> bytes:
    """
    Sign a message hash using ECDSA on secp256k1.

    Args:
        message_hash: 32-byte hash of the message to sign
        private_key: 32-byte private key

    Returns:
        64-byte signature (r || s)
    """
    if len(message_hash) != 32:
        raise ValueError("Message hash must be 32 bytes")
    if len(private_key) != 32:
        raise ValueError("Private key must be 32 bytes")

    _, r, s = secp256k1.ecdsa_raw_sign(message_hash, private_key)

    # Low-s form (EIP-2) to rule out malleable signatures
    if s > SECP256K1_ORDER // 2:
        s = SECP256K1_ORDER - s

    return r.to_bytes(32, byteorder="big") + s.to_bytes(32, byteorder="big")


def verify(message_hash: bytes, signature: bytes, public_key: bytes) -> bool:
    """
    Verify an ECDSA signature.

    Args:
        message_hash: 32-byte hash of the signed message
        signature: 64-byte signature (r || s)
        public_key: 64-byte public key (x || y)

    Returns:
        True if signature is valid, False otherwise
    """
    if len(message_hash) != 32 or len(signature) != 64 or len(public_key) != 64:
        return False

    r = int.from_bytes(signature[:32], byteorder="big")
    s = int.from_bytes(signature[32:], byteorder="big")
    if not (1 <= r < SECP256K1_ORDER and 1 <= s < SECP256K1_ORDER):
        return False

    expected = (
        int.from_bytes(public_key[:32], byteorder="big"),
        int.from_bytes(public_key[32:], byteorder="big"),
    )

    # No recovery id is carried, so try both candidates
    for v in (27, 28):
        try:
            if secp256k1.ecdsa_raw_recover(message_hash, (v, r, s)) == expected:
                return True
        except Exception:
            continue

    return False


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


def short_hex(data: Optional[bytes], length: int = 8) -> str:
    """Abbreviated hex for log lines."""
    if data is None:
        return "None"
    return data.hex()[:length]


__all__ = [
    "SECP256K1_ORDER",
    "ADDRESS_SIZE",
    "DIGEST_SIZE",
    "sha3_256",
    "keccak256",
    "shake128",
    "digests_equal",
    "KeyPair",
    "generate_keypair",
    "private_key_to_public_key",
    "address_from_public_key",
    "sign",
    "verify",
    "bytes_to_hex",
    "hex_to_bytes",
    "short_hex",
]
