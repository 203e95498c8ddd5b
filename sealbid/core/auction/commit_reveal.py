"""
Commit-Reveal Auction - Sealed-bid auction with escrowed application fees.

This module implements a three-phase auction:
1. Open: bidders submit hash commitments and pay a fixed fee
2. Reveal window: after the deadline, bidders reveal (value, nonce)
3. Closed: the operator finalizes, an asset is minted to the winner
   and the escrowed fees are paid out

Phases are never stored. They are derived from (now, deadline, ended)
at every call, so the engine needs no timers and tests need no clock.

Winner selection: a reveal replaces the incumbent only if its value is
strictly greater, so among equal bids the earliest revealer wins.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional

from sealbid.core.access import AccessGuard, OperatorGuard
from sealbid.core.auction.escrow import Escrow
from sealbid.core.errors import (
    AuthError,
    DuplicateBidError,
    IntegrityError,
    PaymentError,
    PayoutError,
    PhaseError,
    StateError,
)
from sealbid.core.events import AuctionEnded, BidPlaced, EventBus, FundsWithdrawn
from sealbid.core.registry.asset_registry import AssetMinter
from sealbid.core.state.ledger import PayoutRail
from sealbid.crypto import hash_bid_commitment, is_valid_address, normalize_address
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import (
    require,
    validate_amount,
    validate_commitment,
    validate_integer,
    validate_metadata,
)

logger = get_logger("auction")


# =============================================================================
# Phases
# =============================================================================


class AuctionPhase(IntEnum):
    """Phase of a sealed-bid auction."""
    OPEN = 0           # Accepting commitments
    REVEAL_WINDOW = 1  # Deadline passed, accepting reveals
    CLOSED = 2         # Finalized (terminal)


def derive_phase(now: int, deadline: int, ended: bool) -> AuctionPhase:
    """Phase as a pure function of the clock and the terminal flag."""
    if ended:
        return AuctionPhase.CLOSED
    if now < deadline:
        return AuctionPhase.OPEN
    return AuctionPhase.REVEAL_WINDOW


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class Commitment:
    """
    A bidder's sealed bid.

    The hash is immutable once stored; reveal only reads it.
    """
    bidder: str
    commitment_hash: bytes
    committed_at: int
    has_committed: bool = True
    revealed: bool = False
    revealed_value: Optional[int] = None
    revealed_at: Optional[int] = None


@dataclass(frozen=True)
class AuctionStatus:
    is_active: bool
    time_remaining: int


@dataclass(frozen=True)
class FinalizeResult:
    """Outcome of finalize_auction."""
    auction_id: int
    winner: Optional[str]
    highest_value: int
    asset_id: Optional[int]
    amount_withdrawn: int
    payout_pending: bool = False


# =============================================================================
# Sealed-Bid Auction
# =============================================================================


@dataclass
class SealedBidAuction:
    """
    A single sealed-bid auction instance.

    Owns phase, deadline, commitments, winner and escrow. Collaborators
    (asset minting, access control, payout) are injected.
    """
    auction_id: int
    deadline: int
    fee_amount: int
    asset_registry: AssetMinter = field(repr=False)
    access_guard: AccessGuard = field(repr=False)
    payout_rail: PayoutRail = field(repr=False)
    event_bus: EventBus = field(default_factory=EventBus, repr=False)
    created_at: int = 0

    # State
    ended: bool = False
    highest_value: int = 0
    winner: Optional[str] = None
    asset_id: Optional[int] = None
    finalized_at: Optional[int] = None
    payout_pending: bool = False

    # Bidder -> Commitment
    commitments: Dict[str, Commitment] = field(default_factory=dict)
    escrow: Optional[Escrow] = None

    def __post_init__(self):
        require(validate_amount(self.fee_amount, "fee_amount"))
        require(validate_integer(self.deadline, "deadline"))
        if self.escrow is None:
            self.escrow = Escrow(fee_amount=self.fee_amount)

    # =========================================================================
    # Phase
    # =========================================================================

    def phase(self, now: int) -> AuctionPhase:
        return derive_phase(now, self.deadline, self.ended)

    # =========================================================================
    # Commit Phase
    # =========================================================================

    def place_bid(
        self,
        commitment_hash: bytes,
        payment_amount: int,
        caller: str,
        now: int,
    ) -> Commitment:
        """
        Store a sealed bid and take custody of the fee.

        Args:
            commitment_hash: keccak256(value, nonce, caller)
            payment_amount: Funds attached to the call
            caller: Bidder identity
            now: Current time

        Returns:
            The stored Commitment
        """
        caller = normalize_address(caller)
        require(validate_commitment(commitment_hash))
        require(validate_amount(payment_amount, "payment_amount"))

        if self.phase(now) != AuctionPhase.OPEN:
            logger.debug(f"Auction {self.auction_id}: bid from {caller} rejected, not open")
            raise PhaseError("auction not open")

        if self.has_bid(caller):
            logger.warning(f"Auction {self.auction_id}: duplicate bid from {caller}")
            raise DuplicateBidError("duplicate bid")

        if payment_amount != self.fee_amount:
            logger.debug(f"Auction {self.auction_id}: fee {payment_amount} != {self.fee_amount}")
            raise PaymentError("incorrect fee")

        self.escrow.deposit(caller, payment_amount)
        commitment = Commitment(
            bidder=caller,
            commitment_hash=bytes(commitment_hash),
            committed_at=now,
        )
        self.commitments[caller] = commitment

        self.event_bus.emit(BidPlaced(auction_id=self.auction_id, bidder=caller, timestamp=now))
        logger.info(f"Auction {self.auction_id}: bid placed by {caller} "
                    f"({len(self.commitments)} total, escrow {self.escrow.balance})")
        return commitment

    # =========================================================================
    # Reveal Phase
    # =========================================================================

    def reveal_bid(self, bid_value: int, nonce: int, caller: str, now: int) -> bool:
        """
        Open a sealed bid.

        Args:
            bid_value: The committed value
            nonce: The committed blinding nonce
            caller: Bidder identity
            now: Current time

        Returns:
            True if the caller is the leading bidder after this reveal
        """
        caller = normalize_address(caller)

        if now < self.deadline and not self.ended:
            raise PhaseError("too early")

        commitment = self.commitments.get(caller)
        if commitment is None:
            raise StateError("no bid")

        if self.ended:
            raise PhaseError("already finalized")

        if commitment.revealed:
            raise StateError("already revealed")

        require(validate_amount(bid_value, "bid_value"))
        require(validate_amount(nonce, "nonce"))

        if hash_bid_commitment(bid_value, nonce, caller) != commitment.commitment_hash:
            logger.warning(f"Auction {self.auction_id}: reveal mismatch for {caller}")
            raise IntegrityError("reveal does not match commitment")

        commitment.revealed = True
        commitment.revealed_value = bid_value
        commitment.revealed_at = now

        if bid_value > self.highest_value:
            self.highest_value = bid_value
            self.winner = caller
            logger.info(f"Auction {self.auction_id}: new leader {caller} with {bid_value}")
        else:
            logger.debug(f"Auction {self.auction_id}: reveal {bid_value} from {caller} "
                         f"does not beat {self.highest_value}")

        return self.winner == caller

    # =========================================================================
    # Finalization
    # =========================================================================

    def finalize_auction(self, asset_metadata: str, caller: str, now: int) -> FinalizeResult:
        """
        Close the auction, mint the asset to the winner and pay out escrow.

        Effects are ordered so that nothing is written if minting fails.
        Once the auction is closed, a payout failure raises PayoutError but
        keeps the funds in escrow; withdraw_funds() retries the payout.

        Args:
            asset_metadata: Metadata for the minted record
            caller: Must pass the access guard
            now: Current time

        Returns:
            FinalizeResult
        """
        if not self.access_guard.is_authorized(caller):
            logger.warning(f"Auction {self.auction_id}: finalize by non-operator {caller}")
            raise AuthError("not operator")

        if self.ended:
            raise StateError("already finalized")

        if now < self.deadline:
            raise PhaseError("auction still active")

        require(validate_metadata(asset_metadata))
        operator = normalize_address(caller)

        asset_id = None
        if self.winner is not None:
            asset_id = self.asset_registry.mint_one(self.winner, asset_metadata)

        self.ended = True
        self.asset_id = asset_id
        self.finalized_at = now

        if self.winner is not None:
            self.event_bus.emit(AuctionEnded(
                auction_id=self.auction_id,
                winner=self.winner,
                highest_value=self.highest_value,
                asset_id=asset_id,
            ))
            logger.info(f"Auction {self.auction_id} ended: winner={self.winner}, "
                        f"value={self.highest_value}, asset={asset_id}")
        else:
            logger.info(f"Auction {self.auction_id} ended without a revealed bid")

        try:
            amount = self._pay_out(operator)
        except Exception as e:
            self.payout_pending = True
            logger.error(f"Auction {self.auction_id}: payout of {self.escrow.balance} "
                         f"to {operator} failed: {e}")
            raise PayoutError(f"payout failed: {e}", result=self._result(0)) from e

        return self._result(amount)

    def withdraw_funds(self, caller: str) -> int:
        """
        Pay out whatever is still in escrow after finalization.

        Returns:
            Amount transferred (0 if nothing was held)
        """
        if not self.access_guard.is_authorized(caller):
            raise AuthError("not operator")

        if not self.ended:
            raise PhaseError("auction not finalized")

        operator = normalize_address(caller)
        try:
            return self._pay_out(operator)
        except Exception as e:
            logger.error(f"Auction {self.auction_id}: payout retry failed: {e}")
            raise PayoutError(f"payout failed: {e}") from e

    def _pay_out(self, operator: str) -> int:
        amount = self.escrow.release(operator, self.payout_rail)
        self.payout_pending = False
        if amount:
            self.event_bus.emit(FundsWithdrawn(
                auction_id=self.auction_id,
                operator=operator,
                amount=amount,
            ))
        return amount

    def _result(self, amount_withdrawn: int) -> FinalizeResult:
        return FinalizeResult(
            auction_id=self.auction_id,
            winner=self.winner,
            highest_value=self.highest_value,
            asset_id=self.asset_id,
            amount_withdrawn=amount_withdrawn,
            payout_pending=self.payout_pending,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def get_status(self, now: int) -> AuctionStatus:
        """Whether bids are accepted, and for how long."""
        is_active = now < self.deadline and not self.ended
        return AuctionStatus(
            is_active=is_active,
            time_remaining=self.deadline - now if is_active else 0,
        )

    def has_bid(self, identity: str) -> bool:
        if not is_valid_address(identity):
            return False
        commitment = self.commitments.get(identity.lower())
        return commitment is not None and commitment.has_committed

    def commitment_of(self, identity: str) -> Optional[Commitment]:
        if not is_valid_address(identity):
            return None
        return self.commitments.get(identity.lower())

    @property
    def bid_count(self) -> int:
        return len(self.commitments)

    @property
    def reveal_count(self) -> int:
        return sum(1 for c in self.commitments.values() if c.revealed)

    @property
    def operator(self) -> str:
        return self.access_guard.operator

    def unrevealed_bidders(self) -> List[str]:
        """Bidders who committed but never revealed."""
        return [b for b, c in self.commitments.items() if not c.revealed]

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_record(self) -> dict:
        """Plain-data snapshot for persistence."""
        return {
            "auction_id": self.auction_id,
            "deadline": self.deadline,
            "fee_amount": self.fee_amount,
            "operator": self.operator,
            "created_at": self.created_at,
            "ended": self.ended,
            "highest_value": self.highest_value,
            "winner": self.winner,
            "asset_id": self.asset_id,
            "finalized_at": self.finalized_at,
            "payout_pending": self.payout_pending,
            "escrow_balance": self.escrow.balance,
            "escrow_released": self.escrow.total_released,
            "commitments": [
                {
                    "bidder": c.bidder,
                    "commitment_hash": c.commitment_hash.hex(),
                    "committed_at": c.committed_at,
                    "revealed": c.revealed,
                    "revealed_value": c.revealed_value,
                    "revealed_at": c.revealed_at,
                }
                for c in self.commitments.values()
            ],
        }

    @classmethod
    def from_record(
        cls,
        record: dict,
        asset_registry: AssetMinter,
        payout_rail: PayoutRail,
        event_bus: Optional[EventBus] = None,
    ) -> "SealedBidAuction":
        """Rebuild an auction from to_record() output."""
        commitments = {}
        for row in record["commitments"]:
            commitments[row["bidder"]] = Commitment(
                bidder=row["bidder"],
                commitment_hash=bytes.fromhex(row["commitment_hash"]),
                committed_at=row["committed_at"],
                revealed=bool(row["revealed"]),
                revealed_value=row["revealed_value"],
                revealed_at=row["revealed_at"],
            )

        escrow = Escrow(
            fee_amount=record["fee_amount"],
            balance=record["escrow_balance"],
            deposits={bidder: record["fee_amount"] for bidder in commitments},
            total_released=record["escrow_released"],
        )

        return cls(
            auction_id=record["auction_id"],
            deadline=record["deadline"],
            fee_amount=record["fee_amount"],
            asset_registry=asset_registry,
            access_guard=OperatorGuard(record["operator"]),
            payout_rail=payout_rail,
            event_bus=event_bus or EventBus(),
            created_at=record["created_at"],
            ended=bool(record["ended"]),
            highest_value=record["highest_value"],
            winner=record["winner"],
            asset_id=record["asset_id"],
            finalized_at=record["finalized_at"],
            payout_pending=bool(record["payout_pending"]),
            commitments=commitments,
            escrow=escrow,
        )


# =============================================================================
# Helper Functions
# =============================================================================


def create_commitment(bid_value: int, nonce: int, bidder: str) -> bytes:
    """
    Create the commitment a bidder submits with place_bid.

    Args:
        bid_value: Value being bid
        nonce: Secret blinding value
        bidder: Bidder identity (bound into the hash)

    Returns:
        32-byte commitment
    """
    return hash_bid_commitment(bid_value, nonce, normalize_address(bidder))


__all__ = [
    "SealedBidAuction",
    "Commitment",
    "AuctionPhase",
    "AuctionStatus",
    "FinalizeResult",
    "derive_phase",
    "create_commitment",
]
