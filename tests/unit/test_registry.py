"""
Tests for the AuctionHouse registry.

Tests cover:
1. Auction creation and deterministic identifiers
2. Payable routing: escrow before the call, refund on rejection
3. Listing queries
"""

import pytest

from sealbid.core.auction import AesSlotClient, AuctionError, AuctionState, commit
from sealbid.core.collaborators import AssetRegistry, BalanceBook, SlotClock
from sealbid.core.config import AuctionConfig
from sealbid.core.registry import MAX_NAME_LENGTH, AuctionHouse

OWNER = b"\x0a" * 20
ALICE = b"\x01" * 20
BOB = b"\x02" * 20
UNKNOWN = b"\xff" * 32

DEADLINE = 10
DEPOSIT = 100


@pytest.fixture
def clock():
    return SlotClock()


@pytest.fixture
def balances():
    return BalanceBook({ALICE: 1_000, BOB: 1_000})


@pytest.fixture
def house(clock, balances):
    return AuctionHouse(clock, AssetRegistry(), balances, AuctionConfig(minimum_deposit=DEPOSIT))


@pytest.fixture
def auction_id(house):
    auction_id, err = house.new_auction(OWNER, b"lot #1", deadline=DEADLINE)
    assert err is None
    return auction_id


def bid(house, auction_id, bidder, value, amount=DEPOSIT):
    return house.bid(auction_id, bidder, b"ct", b"\x00" * 12, b"cap", commit(value), amount)


class TestNewAuction:
    """Tests for auction creation."""

    def test_creates_auction_and_mints_asset(self, house, auction_id):
        auction = house.get_auction(auction_id)
        assert auction.owner == OWNER
        assert auction.minimum_deposit == DEPOSIT
        assert auction.deadline == DEADLINE
        assert house.assets.owner_of(auction.asset_reference) == OWNER

    def test_custom_deposit(self, house):
        auction_id, _ = house.new_auction(OWNER, b"lot", deadline=5, deposit=7)
        assert house.get_auction(auction_id).minimum_deposit == 7

    def test_ids_are_unique(self, house):
        first, _ = house.new_auction(OWNER, b"same", deadline=5)
        second, _ = house.new_auction(OWNER, b"same", deadline=5)
        assert first != second
        assert house.get_latest_auction() == second

    def test_id_derivation(self, house):
        auction_id, _ = house.new_auction(OWNER, b"lot", deadline=5)
        assert auction_id == AuctionHouse.compute_auction_id(OWNER, b"lot", 0)
        assert len(auction_id) == 32

    def test_name_too_long(self, house):
        with pytest.raises(ValueError):
            house.new_auction(OWNER, b"x" * (MAX_NAME_LENGTH + 1), deadline=5)

    def test_mint_failure(self, house):
        auction_id = AuctionHouse.compute_auction_id(OWNER, b"lot", 0)
        house.assets.mint(AuctionHouse.compute_asset_reference(auction_id), BOB)
        assert house.new_auction(OWNER, b"lot", deadline=5) == (
            None, AuctionError.ASSET_MINT_FAILED)


class TestRouting:
    """Tests for bid/resolve/claim routing."""

    def test_unknown_auction(self, house):
        assert bid(house, UNKNOWN, ALICE, 1) == (False, AuctionError.AUCTION_DOES_NOT_EXIST)
        assert house.resolve(UNKNOWN, {}) == (False, AuctionError.AUCTION_DOES_NOT_EXIST)
        assert house.claim(UNKNOWN, ALICE) == (False, AuctionError.AUCTION_DOES_NOT_EXIST)
        assert house.withdraw_proceeds(UNKNOWN, OWNER) == (
            0, AuctionError.AUCTION_DOES_NOT_EXIST)
        assert house.get_winner(UNKNOWN) == (None, AuctionError.AUCTION_DOES_NOT_EXIST)

    def test_bid_escrows_deposit(self, house, auction_id, balances):
        assert bid(house, auction_id, ALICE, 5) == (True, None)
        assert balances.balance_of(ALICE) == 1_000 - DEPOSIT
        assert balances.reserve == DEPOSIT

    def test_rejected_bid_returns_funds(self, house, auction_id, balances):
        assert bid(house, auction_id, ALICE, 5, amount=DEPOSIT - 1) == (
            False, AuctionError.DEPOSIT_TOO_LOW)
        assert balances.balance_of(ALICE) == 1_000
        assert balances.reserve == 0

    def test_insufficient_funds(self, house, auction_id):
        assert bid(house, auction_id, ALICE, 5, amount=5_000) == (
            False, AuctionError.INSUFFICIENT_FUNDS)

    def test_invalid_amount(self, house, auction_id):
        assert bid(house, auction_id, ALICE, 5, amount=-1) == (
            False, AuctionError.INVALID_PROPOSAL)

    def test_full_round(self, house, auction_id, clock, balances):
        bid(house, auction_id, ALICE, 40)
        bid(house, auction_id, BOB, 70)
        clock.set_slot(DEADLINE)
        assert house.resolve(auction_id, {ALICE: 40, BOB: 70}) == (True, None)

        result, err = house.get_winner(auction_id)
        assert err is None
        assert (result.winner, result.debt) == (BOB, 40)

        assert house.claim(auction_id, BOB, 40) == (True, None)
        assert house.claim(auction_id, ALICE) == (True, None)
        assert balances.balance_of(ALICE) == 1_000
        assert balances.balance_of(BOB) == 1_000 - DEPOSIT - 40

        paid, err = house.withdraw_proceeds(auction_id, OWNER)
        assert (paid, err) == (40 + DEPOSIT, None)
        assert balances.reserve == 0

    def test_failed_claim_returns_payment(self, house, auction_id, clock, balances):
        bid(house, auction_id, ALICE, 40)
        bid(house, auction_id, BOB, 70)
        clock.set_slot(DEADLINE)
        house.resolve(auction_id, {ALICE: 40, BOB: 70})
        before = balances.balance_of(BOB)
        assert house.claim(auction_id, BOB, 39) == (
            False, AuctionError.INVALID_CURRENCY_AMOUNT_TRANSFERRED)
        assert balances.balance_of(BOB) == before

    def test_no_winner(self, house, auction_id, clock):
        bid(house, auction_id, ALICE, 40)
        clock.set_slot(DEADLINE)
        house.resolve(auction_id, {})
        assert house.get_winner(auction_id) == (None, AuctionError.NO_WINNER_DETERMINED)

    def test_reveal_and_resolve_before_deadline(self, house, auction_id):
        assert house.reveal_and_resolve(auction_id, AesSlotClient(), {}) == (
            False, AuctionError.AUCTION_IN_PROGRESS)


class TestListings:
    """Tests for listing queries."""

    def test_details_track_state(self, house, auction_id, clock):
        bid(house, auction_id, ALICE, 1)
        details = house.get_auction_details(auction_id)
        assert details.name == b"lot #1"
        assert details.bids == 1
        assert details.status == AuctionState.BIDDING

        clock.set_slot(DEADLINE)
        house.resolve(auction_id, {ALICE: 1})
        assert house.get_auction_details(auction_id).status == AuctionState.RESOLVED

    def test_by_owner_and_bidder(self, house, auction_id):
        other, _ = house.new_auction(BOB, b"lot #2", deadline=DEADLINE)
        bid(house, auction_id, ALICE, 1)
        bid(house, other, ALICE, 1)
        bid(house, other, ALICE, 2)

        assert [d.auction_id for d in house.get_auctions_by_owner(OWNER)] == [auction_id]
        assert [d.auction_id for d in house.get_auctions_by_bidder(ALICE)] == [auction_id, other]
        assert house.get_auctions_by_bidder(BOB) == []
        assert len(house.get_auctions()) == 2

    def test_by_asset(self, house, auction_id):
        asset = house.get_auction(auction_id).asset_reference
        assert house.get_auction_details_by_asset(asset).auction_id == auction_id
        assert house.get_auction_details_by_asset(UNKNOWN) is None

    def test_empty_house(self, house):
        assert house.get_latest_auction() is None
        assert house.get_auction_details(UNKNOWN) is None

    def test_stats(self, house, auction_id):
        bid(house, auction_id, ALICE, 1)
        stats = house.stats()
        assert stats["total_auctions"] == 1
        assert stats["bidders"] == 1
        assert stats["escrow_reserve"] == DEPOSIT
        assert stats["auctions_bidding"] == 1
