"""
External collaborators of an auction.

The auction core consumes three services it does not implement:

- a reveal-eligibility oracle answering "has the deadline slot passed?"
- an asset registry that moves the auctioned item to the winner
- a balance service that pays out refunds and proceeds

Each is described by a Protocol and injected into the auction. The
in-memory implementations below back the CLI demo and the tests; a
deployment wires in clients for the real chain services instead.
"""

import threading
from typing import Dict, Optional, Protocol, Tuple

from sealbid.crypto import short_hex
from sealbid.utils.logger import get_logger

logger = get_logger("collaborators")


# =============================================================================
# Interfaces
# =============================================================================


class RevealOracle(Protocol):
    """Reports whether the reveal condition for a deadline token holds."""

    def is_deadline_reached(self, deadline: int) -> bool:
        ...


class AssetTransfer(Protocol):
    """Moves ownership of an auctioned asset."""

    def transfer(self, asset_reference: bytes, from_: bytes, to: bytes) -> Tuple[bool, str]:
        ...


class BalanceTransfer(Protocol):
    """Pays currency out of auction escrow."""

    def transfer_balance(self, to: bytes, amount: int) -> Tuple[bool, str]:
        ...


# =============================================================================
# Slot Clock
# =============================================================================


class SlotClock:
    """
    Reveal oracle driven by a slot counter.

    A deadline is reached once a block has been authored in its slot,
    i.e. when current_slot >= deadline. Decryption keys for a slot only
    exist from that point on.
    """

    def __init__(self, current_slot: int = 0):
        if current_slot < 0:
            raise ValueError(f"Slot must be >= 0, got {current_slot}")
        self.current_slot = current_slot
        self._lock = threading.Lock()

    def advance(self, slots: int = 1) -> int:
        """Move the clock forward and return the new slot."""
        if slots < 0:
            raise ValueError("Cannot move the clock backwards")
        with self._lock:
            self.current_slot += slots
            return self.current_slot

    def set_slot(self, slot: int) -> None:
        with self._lock:
            if slot < self.current_slot:
                raise ValueError(f"Cannot move the clock backwards: {slot} < {self.current_slot}")
            self.current_slot = slot

    def is_deadline_reached(self, deadline: int) -> bool:
        return self.current_slot >= deadline


# =============================================================================
# Asset Registry
# =============================================================================


class AssetRegistry:
    """
    In-memory non-fungible asset registry.

    Each asset reference has exactly one owner.
    """

    def __init__(self):
        self.owners: Dict[bytes, bytes] = {}
        self._lock = threading.Lock()

    def mint(self, asset_reference: bytes, owner: bytes) -> Tuple[bool, str]:
        """
        Create a new asset owned by `owner`.

        Returns:
            (success, error_message)
        """
        with self._lock:
            if asset_reference in self.owners:
                return False, "Asset already exists"
            self.owners[asset_reference] = owner
        logger.debug(f"Minted asset {short_hex(asset_reference)} to {short_hex(owner)}")
        return True, ""

    def owner_of(self, asset_reference: bytes) -> Optional[bytes]:
        return self.owners.get(asset_reference)

    def transfer(self, asset_reference: bytes, from_: bytes, to: bytes) -> Tuple[bool, str]:
        """
        Transfer an asset.

        Returns:
            (success, error_message)
        """
        with self._lock:
            owner = self.owners.get(asset_reference)
            if owner is None:
                return False, "Asset not found"
            if owner != from_:
                return False, "Sender does not own the asset"
            self.owners[asset_reference] = to
        logger.debug(f"Asset {short_hex(asset_reference)} transferred to {short_hex(to)}")
        return True, ""


# =============================================================================
# Balance Book
# =============================================================================


class BalanceBook:
    """
    In-memory account balances with an escrow reserve.

    Incoming payments (deposits, winner payments) move from an account
    into the reserve; refunds and proceeds move from the reserve back
    to accounts.
    """

    def __init__(self, balances: Optional[Dict[bytes, int]] = None):
        self.balances: Dict[bytes, int] = dict(balances or {})
        self.reserve: int = 0
        self._lock = threading.Lock()

    def balance_of(self, account: bytes) -> int:
        return self.balances.get(account, 0)

    def credit(self, account: bytes, amount: int) -> None:
        """Mint funds into an account (genesis / faucet)."""
        if amount < 0:
            raise ValueError("Amount must be non-negative")
        with self._lock:
            self.balances[account] = self.balances.get(account, 0) + amount

    def escrow(self, from_: bytes, amount: int) -> Tuple[bool, str]:
        """
        Move funds from an account into the reserve.

        Returns:
            (success, error_message)
        """
        if amount < 0:
            return False, "Amount must be non-negative"
        with self._lock:
            available = self.balances.get(from_, 0)
            if available < amount:
                return False, f"Insufficient balance: have {available}, need {amount}"
            self.balances[from_] = available - amount
            self.reserve += amount
        return True, ""

    def transfer_balance(self, to: bytes, amount: int) -> Tuple[bool, str]:
        """
        Pay out of the reserve.

        Returns:
            (success, error_message)
        """
        if amount < 0:
            return False, "Amount must be non-negative"
        with self._lock:
            if self.reserve < amount:
                return False, f"Insufficient reserve: have {self.reserve}, need {amount}"
            self.reserve -= amount
            self.balances[to] = self.balances.get(to, 0) + amount
        logger.debug(f"Paid {amount} to {short_hex(to)}")
        return True, ""


__all__ = [
    "RevealOracle",
    "AssetTransfer",
    "BalanceTransfer",
    "SlotClock",
    "AssetRegistry",
    "BalanceBook",
]
