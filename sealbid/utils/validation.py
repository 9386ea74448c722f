"""
Input Validation - Security-focused input sanitization.

Provides validation for all external inputs to prevent:
- Integer overflows (bids and balances are u128 on the chain side)
- Invalid format attacks
- Resource exhaustion through oversized blobs
"""

from typing import Any, Optional, Tuple

from sealbid.crypto import ADDRESS_SIZE, DIGEST_SIZE

# =============================================================================
# Constants
# =============================================================================

# Maximum sizes
MAX_SIGNATURE_SIZE = 64
MAX_BLOB_SIZE = 4096  # 4KB per ciphertext/nonce/capsule

# Field bounds
MIN_AMOUNT = 0
MAX_AMOUNT = 2**128 - 1
MAX_BID_VALUE = 2**128 - 1


# =============================================================================
# Validation Functions
# =============================================================================


def validate_bytes(
    data: Any,
    name: str,
    expected_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate bytes input.

    Args:
        data: Data to validate
        name: Field name for error messages
        expected_length: Exact expected length
        max_length: Maximum allowed length

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, (bytes, bytearray)):
        return False, f"{name} must be bytes, got {type(data).__name__}"

    if expected_length is not None and len(data) != expected_length:
        return False, f"{name} must be {expected_length} bytes, got {len(data)}"

    if max_length is not None and len(data) > max_length:
        return False, f"{name} exceeds max length {max_length}, got {len(data)}"

    return True, ""


def validate_address(address: Any, name: str = "address") -> Tuple[bool, str]:
    """Validate a 20-byte bidder/owner address."""
    return validate_bytes(address, name, expected_length=ADDRESS_SIZE)


def validate_digest(digest: Any, name: str = "commitment") -> Tuple[bool, str]:
    """Validate a 32-byte digest."""
    return validate_bytes(digest, name, expected_length=DIGEST_SIZE)


def validate_blob(data: Any, name: str, max_length: int = MAX_BLOB_SIZE) -> Tuple[bool, str]:
    """Validate an opaque ciphertext component."""
    return validate_bytes(data, name, max_length=max_length)


def validate_signature(signature: Any) -> Tuple[bool, str]:
    """Validate a signature (empty means unsigned)."""
    if isinstance(signature, (bytes, bytearray)) and len(signature) == 0:
        return True, ""
    return validate_bytes(signature, "signature", expected_length=MAX_SIGNATURE_SIZE)


def validate_integer(
    value: Any,
    name: str,
    min_val: int = MIN_AMOUNT,
    max_val: int = MAX_AMOUNT,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    # bool is an int subclass but never a meaningful amount
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a currency amount."""
    return validate_integer(amount, name, MIN_AMOUNT, MAX_AMOUNT)


def validate_bid_value(value: Any) -> Tuple[bool, str]:
    """Validate a plaintext bid value (u128)."""
    return validate_integer(value, "bid", 0, MAX_BID_VALUE)


__all__ = [
    "validate_bytes",
    "validate_address",
    "validate_digest",
    "validate_blob",
    "validate_signature",
    "validate_integer",
    "validate_amount",
    "validate_bid_value",
    "MAX_SIGNATURE_SIZE",
    "MAX_BLOB_SIZE",
    "MAX_AMOUNT",
    "MAX_BID_VALUE",
]
