"""
Adversarial Tests - robustness of the sealed-bid auction.

Tests verify:
1. Dishonest reveals cannot win or move the price
2. Late, forged and oversized proposals are rejected
3. Repeated and out-of-turn calls do not move funds
4. Concurrent submissions keep the registry consistent
"""

import threading

import pytest

from sealbid.core.auction import AuctionError, Proposal, SealedBidAuction, commit
from sealbid.core.collaborators import AssetRegistry, BalanceBook, SlotClock
from sealbid.core.config import AuctionConfig
from sealbid.crypto import generate_keypair

OWNER = b"\x0a" * 20
FUNDER = b"\x0f" * 20
ASSET = b"\xaa" * 32
DEADLINE = 10
DEPOSIT = 100


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def clock():
    return SlotClock()


@pytest.fixture
def balances():
    book = BalanceBook()
    book.credit(FUNDER, 1_000_000)
    book.escrow(FUNDER, 1_000_000)
    return book


@pytest.fixture
def auction(clock, balances):
    assets = AssetRegistry()
    assets.mint(ASSET, OWNER)
    return SealedBidAuction(
        auction_id=b"\x01" * 32,
        asset_reference=ASSET,
        owner=OWNER,
        deadline=DEADLINE,
        oracle=clock,
        assets=assets,
        balances=balances,
        minimum_deposit=DEPOSIT,
        config=AuctionConfig(max_participants=64, max_blob_size=256),
    )


def bidder(n: int) -> bytes:
    return n.to_bytes(20, "big")


def submit(auction, who, value, **kwargs):
    return auction.submit_proposal(
        who, b"ciphertext", b"\x00" * 12, b"capsule", commit(value), DEPOSIT, **kwargs
    )


# =============================================================================
# Dishonest Reveals
# =============================================================================


class TestDishonestReveals:
    """A reveal that does not match its commitment never helps the bidder."""

    def test_inflated_reveal_cannot_win(self, auction, clock):
        submit(auction, bidder(1), 50)
        submit(auction, bidder(2), 10)
        clock.set_slot(DEADLINE)
        # bidder 2 claims a huge value it never committed to
        auction.resolve({bidder(1): 50, bidder(2): 10**9})
        assert auction.get_winner().winner == bidder(1)
        assert auction.get_winner().debt == 0

    def test_deflated_reveal_cannot_lower_price(self, auction, clock):
        submit(auction, bidder(1), 50)
        submit(auction, bidder(2), 40)
        clock.set_slot(DEADLINE)
        auction.resolve({bidder(1): 50, bidder(2): 1})
        # bidder 2 is dropped, so the price falls to 0 and bidder 2 only gets a refund
        assert auction.get_winner().debt == 0
        assert auction.get_winner().winner == bidder(1)
        assert auction.claim(bidder(2)) == (True, None)
        assert auction.claim(bidder(2)) == (False, AuctionError.ALREADY_CLAIMED)

    def test_swapped_reveals_both_fail(self, auction, clock, balances):
        submit(auction, bidder(1), 7)
        submit(auction, bidder(2), 8)
        clock.set_slot(DEADLINE)
        auction.resolve({bidder(1): 8, bidder(2): 7})
        assert auction.get_winner() is None
        assert auction.ledger.store.failed_count() == 2
        assert auction.get_proceeds() == 0
        assert auction.claim(bidder(1)) == (True, None)
        assert auction.claim(bidder(2)) == (True, None)
        assert balances.balance_of(bidder(1)) == DEPOSIT
        assert balances.balance_of(bidder(2)) == DEPOSIT


# =============================================================================
# Rejected Proposals
# =============================================================================


class TestRejectedProposals:
    """Proposals that must never enter the ledger."""

    def test_late_proposal(self, auction, clock):
        clock.set_slot(DEADLINE + 100)
        assert submit(auction, bidder(1), 5) == (False, AuctionError.AUCTION_ALREADY_COMPLETE)
        assert auction.get_participants() == []

    def test_forged_signature(self, auction):
        victim = generate_keypair()
        attacker = generate_keypair()
        forged = Proposal(victim.address, DEPOSIT, b"ciphertext", b"\x00" * 12, b"capsule",
                          commit(1))
        forged.sign(attacker.private_key, auction.auction_id)
        ok, err = submit(auction, victim.address, 1, signature=forged.signature,
                         public_key=attacker.public_key)
        assert (ok, err) == (False, AuctionError.INVALID_SIGNATURE)

    def test_signature_replay_across_auctions(self, auction):
        kp = generate_keypair()
        proposal = Proposal(kp.address, DEPOSIT, b"ciphertext", b"\x00" * 12, b"capsule",
                            commit(1))
        proposal.sign(kp.private_key, b"\x02" * 32)
        ok, err = submit(auction, kp.address, 1, signature=proposal.signature,
                         public_key=kp.public_key)
        assert (ok, err) == (False, AuctionError.INVALID_SIGNATURE)

    def test_oversized_blob(self, auction):
        ok, err = auction.submit_proposal(
            bidder(1), b"\x00" * 257, b"\x00" * 12, b"capsule", commit(1), DEPOSIT
        )
        assert (ok, err) == (False, AuctionError.INVALID_PROPOSAL)

    def test_registry_flood(self, auction):
        for n in range(64):
            assert submit(auction, bidder(n + 1), n)[0]
        assert submit(auction, bidder(1000), 1) == (False, AuctionError.TOO_MANY_PARTICIPANTS)
        assert len(auction.get_participants()) == 64


# =============================================================================
# Replays and Out-of-Turn Calls
# =============================================================================


class TestReplays:
    """Repeated or premature calls never move funds."""

    def test_double_refund(self, auction, clock, balances):
        submit(auction, bidder(1), 5)
        submit(auction, bidder(2), 6)
        clock.set_slot(DEADLINE)
        auction.resolve({bidder(1): 5, bidder(2): 6})
        assert auction.claim(bidder(1)) == (True, None)
        reserve = balances.reserve
        for _ in range(5):
            assert auction.claim(bidder(1)) == (False, AuctionError.ALREADY_CLAIMED)
        assert balances.reserve == reserve

    def test_double_winner_claim(self, auction, clock):
        submit(auction, bidder(1), 5)
        submit(auction, bidder(2), 6)
        clock.set_slot(DEADLINE)
        auction.resolve({bidder(1): 5, bidder(2): 6})
        assert auction.claim(bidder(2), 5) == (True, None)
        assert auction.claim(bidder(2), 5) == (False, AuctionError.ALREADY_CLAIMED)

    def test_premature_calls(self, auction, clock, balances):
        submit(auction, bidder(1), 5)
        reserve = balances.reserve
        assert auction.resolve({bidder(1): 5}) == (False, AuctionError.AUCTION_IN_PROGRESS)
        assert auction.claim(bidder(1)) == (False, AuctionError.AUCTION_IN_PROGRESS)
        assert auction.withdraw_proceeds(OWNER) == (0, AuctionError.NO_PROCEEDS)
        assert balances.reserve == reserve

    def test_outsider_withdraw(self, auction, clock):
        submit(auction, bidder(1), 5)
        clock.set_slot(DEADLINE)
        auction.resolve({bidder(1): 6})
        assert auction.withdraw_proceeds(bidder(1)) == (0, AuctionError.NOT_AUCTION_OWNER)


# =============================================================================
# Concurrency
# =============================================================================


class TestConcurrency:
    """Concurrent submissions through a single auction."""

    def test_concurrent_submissions(self, auction):
        errors = []

        def worker(start: int):
            for n in range(start, start + 8):
                ok, err = submit(auction, bidder(n), n)
                if not ok:
                    errors.append(err)

        threads = [threading.Thread(target=worker, args=(i * 8 + 1,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        participants = auction.get_participants()
        assert len(participants) == 64
        assert len(set(participants)) == 64
        sequences = sorted(auction.get_proposal(p).sequence for p in participants)
        assert sequences == list(range(1, 65))
