"""
Adversarial scenarios against a full auction deployment.

Covers:
1. Copied commitments (bid sniping by replaying another bidder's hash)
2. Repeated and late bids
3. Unauthorized finalize and withdraw
4. Escrow conservation over many bidders
"""

import pytest

from sealbid.core.auction import AuctionHouse, create_commitment
from sealbid.core.clock import ManualClock
from sealbid.core.errors import (
    AuthError,
    DuplicateBidError,
    IntegrityError,
    PaymentError,
    PhaseError,
    StateError,
)
from sealbid.core.events import AuctionEnded, BidPlaced, FundsWithdrawn
from sealbid.core.registry import AssetRegistry
from sealbid.core.state import BalanceLedger, LedgerPayoutRail
from sealbid.crypto import generate_keypair


OPERATOR = "0x" + "0f" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
MALLORY = "0x" + "dd" * 20

FEE = 10**16
DURATION = 3600


@pytest.fixture
def clock():
    return ManualClock(start=1_000_000)


@pytest.fixture
def ledger():
    return BalanceLedger()


@pytest.fixture
def house(clock, ledger):
    return AuctionHouse(
        asset_registry=AssetRegistry(),
        payout_rail=LedgerPayoutRail(ledger),
        operator=OPERATOR,
        clock=clock,
        fee_amount=FEE,
    )


class TestReferenceRun:
    """Two bidders, the higher reveal wins."""

    def test_two_bidder_auction(self, house, clock, ledger):
        auction_id = house.create_auction(DURATION)

        house.place_bid(auction_id, create_commitment(30, 7, ALICE), FEE, ALICE)
        house.place_bid(auction_id, create_commitment(50, 9, BOB), FEE, BOB)
        assert house.get(auction_id).escrow.balance == 2 * FEE

        clock.advance(DURATION)
        house.reveal_bid(auction_id, 30, 7, ALICE)
        assert house.get(auction_id).winner == ALICE
        house.reveal_bid(auction_id, 50, 9, BOB)
        assert house.get(auction_id).winner == BOB

        result = house.finalize_auction(auction_id, "ipfs://asset", OPERATOR)

        assert result.winner == BOB
        assert result.highest_value == 50
        assert result.amount_withdrawn == 2 * FEE
        assert house.asset_registry.owner_of(result.asset_id) == BOB
        assert ledger.get_balance(OPERATOR) == 2 * FEE
        assert house.get(auction_id).escrow.balance == 0

        names = [e.name for e in house.event_bus.events_for(auction_id)]
        assert names == [BidPlaced.name, BidPlaced.name, AuctionEnded.name, FundsWithdrawn.name]


class TestCopiedCommitment:
    """A commitment is bound to its author's identity."""

    def test_replayed_hash_cannot_be_revealed(self, house, clock):
        auction_id = house.create_auction(DURATION)
        alice_hash = create_commitment(30, 7, ALICE)

        house.place_bid(auction_id, alice_hash, FEE, ALICE)
        # Mallory submits Alice's hash verbatim; accepted as an opaque value
        house.place_bid(auction_id, alice_hash, FEE, MALLORY)

        clock.advance(DURATION)
        house.reveal_bid(auction_id, 30, 7, ALICE)

        # Even after seeing Alice's opening, Mallory cannot claim it
        with pytest.raises(IntegrityError):
            house.reveal_bid(auction_id, 30, 7, MALLORY)

        auction = house.get(auction_id)
        assert auction.winner == ALICE
        assert not auction.commitment_of(MALLORY).revealed

    def test_mallory_cannot_reveal_for_alice(self, house, clock):
        auction_id = house.create_auction(DURATION)
        house.place_bid(auction_id, create_commitment(30, 7, ALICE), FEE, ALICE)
        clock.advance(DURATION)

        with pytest.raises(StateError, match="no bid"):
            house.reveal_bid(auction_id, 30, 7, MALLORY)

    def test_wrong_opening_does_not_burn_commitment(self, house, clock):
        auction_id = house.create_auction(DURATION)
        house.place_bid(auction_id, create_commitment(30, 7, ALICE), FEE, ALICE)
        clock.advance(DURATION)

        with pytest.raises(IntegrityError):
            house.reveal_bid(auction_id, 31, 7, ALICE)
        assert house.reveal_bid(auction_id, 30, 7, ALICE)


class TestBidAbuse:

    def test_second_bid_rejected(self, house):
        auction_id = house.create_auction(DURATION)
        house.place_bid(auction_id, create_commitment(30, 7, ALICE), FEE, ALICE)

        with pytest.raises(DuplicateBidError):
            house.place_bid(auction_id, create_commitment(99, 1, ALICE), FEE, ALICE)
        assert house.get(auction_id).commitment_of(ALICE).commitment_hash == create_commitment(30, 7, ALICE)

    def test_underpaid_and_overpaid(self, house):
        auction_id = house.create_auction(DURATION)
        for amount in (FEE - 1, FEE + 1, 0):
            with pytest.raises(PaymentError):
                house.place_bid(auction_id, create_commitment(1, 1, ALICE), amount, ALICE)
        assert house.get(auction_id).bid_count == 0

    def test_bid_at_deadline_rejected(self, house, clock):
        auction_id = house.create_auction(DURATION)
        clock.advance(DURATION)

        with pytest.raises(PhaseError, match="auction not open"):
            house.place_bid(auction_id, create_commitment(1, 1, ALICE), FEE, ALICE)

    def test_reveal_after_finalize_rejected(self, house, clock):
        auction_id = house.create_auction(DURATION)
        house.place_bid(auction_id, create_commitment(30, 7, ALICE), FEE, ALICE)
        house.place_bid(auction_id, create_commitment(50, 9, BOB), FEE, BOB)
        clock.advance(DURATION)
        house.reveal_bid(auction_id, 30, 7, ALICE)
        house.finalize_auction(auction_id, "ipfs://asset", OPERATOR)

        # Bob's higher bid arrives too late to change the outcome
        with pytest.raises(PhaseError, match="already finalized"):
            house.reveal_bid(auction_id, 50, 9, BOB)
        assert house.get(auction_id).winner == ALICE


class TestOperatorAbuse:

    def test_non_operator_cannot_finalize_or_withdraw(self, house, clock, ledger):
        auction_id = house.create_auction(DURATION)
        house.place_bid(auction_id, create_commitment(30, 7, ALICE), FEE, ALICE)
        clock.advance(DURATION)

        with pytest.raises(AuthError):
            house.finalize_auction(auction_id, "ipfs://asset", MALLORY)
        assert not house.get(auction_id).ended

        house.finalize_auction(auction_id, "ipfs://asset", OPERATOR)
        with pytest.raises(AuthError):
            house.withdraw_funds(auction_id, MALLORY)
        assert ledger.get_balance(MALLORY) == 0

    def test_double_finalize(self, house, clock, ledger):
        auction_id = house.create_auction(DURATION)
        house.place_bid(auction_id, create_commitment(30, 7, ALICE), FEE, ALICE)
        clock.advance(DURATION)
        house.reveal_bid(auction_id, 30, 7, ALICE)
        house.finalize_auction(auction_id, "ipfs://asset", OPERATOR)

        with pytest.raises(StateError):
            house.finalize_auction(auction_id, "ipfs://asset", OPERATOR)
        assert house.asset_registry.total_supply() == 1
        assert ledger.get_balance(OPERATOR) == FEE


class TestEscrowConservation:

    def test_many_bidders(self, house, clock, ledger):
        auction_id = house.create_auction(DURATION)
        bidders = [generate_keypair().address for _ in range(8)]

        for i, bidder in enumerate(bidders):
            house.place_bid(auction_id, create_commitment(100 + i, i, bidder), FEE, bidder)
            clock.advance(1)
            auction = house.get(auction_id)
            assert auction.escrow.check_invariant(auction.bid_count)

        clock.set(house.get(auction_id).deadline)
        # Only half reveal; unrevealed fees still go to the operator
        for i, bidder in enumerate(bidders[::2]):
            house.reveal_bid(auction_id, 100 + 2 * i, 2 * i, bidder)

        result = house.finalize_auction(auction_id, "ipfs://asset", OPERATOR)
        auction = house.get(auction_id)

        assert result.winner == bidders[6].lower()
        assert result.highest_value == 106
        assert ledger.get_balance(OPERATOR) == len(bidders) * FEE
        assert auction.escrow.check_invariant(len(bidders))
        assert len(auction.unrevealed_bidders()) == 4
