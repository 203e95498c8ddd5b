"""
Auction House - table of independent auction instances.

Each auction is keyed by an integer id allocated from a Counter. All
instances share the asset registry, payout rail, event bus and clock;
each carries its own operator guard, deadline, fee and escrow.

When a StorageManager is attached, each operation is written in one
transaction before the call returns: either everything it changed is
stored or nothing is. All auctions are reloaded at startup.
"""

from contextlib import contextmanager
from typing import Dict, List, Optional

from sealbid.core.access import OperatorGuard
from sealbid.core.auction.commit_reveal import (
    AuctionStatus,
    Commitment,
    FinalizeResult,
    SealedBidAuction,
)
from sealbid.core.clock import Clock, SystemClock
from sealbid.core.config import DEFAULT_FEE_AMOUNT
from sealbid.core.errors import AuctionError, PayoutError, StateError
from sealbid.core.events import AuctionEvent, EventBus
from sealbid.core.registry.asset_registry import AssetMinter, Counter
from sealbid.core.state.ledger import PayoutRail
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import require, validate_amount, validate_duration

logger = get_logger("house")


class AuctionHouse:
    """
    Manages all auctions of a deployment.

    Handles id allocation, clock reads and persistence; auction rules live
    in SealedBidAuction.
    """

    def __init__(
        self,
        asset_registry: AssetMinter,
        payout_rail: PayoutRail,
        operator: Optional[str] = None,
        clock: Optional[Clock] = None,
        event_bus: Optional[EventBus] = None,
        fee_amount: int = DEFAULT_FEE_AMOUNT,
        storage_manager=None,
    ):
        """
        Initialize the house.

        Args:
            asset_registry: Mints the winner's record
            payout_rail: Receives escrow payouts
            operator: Default operator for new auctions (optional)
            clock: Time source (SystemClock if None)
            event_bus: Shared event bus
            fee_amount: Default per-commitment fee
            storage_manager: Persistence manager. None = in-memory only.
        """
        self.asset_registry = asset_registry
        self.payout_rail = payout_rail
        self.operator = OperatorGuard(operator).operator if operator else None
        self.clock = clock or SystemClock()
        self.event_bus = event_bus or EventBus()
        self.fee_amount = fee_amount
        self.storage_manager = storage_manager

        self.auctions: Dict[int, SealedBidAuction] = {}
        self.counter = Counter()
        self._pending_events: List[AuctionEvent] = []

        if storage_manager:
            self._load_from_storage()
            self.event_bus.subscribe(self._pending_events.append)
            storage_manager.add_rollback_listener(self._load_from_storage)

    def _load_from_storage(self) -> None:
        self.auctions = {}
        for record in self.storage_manager.load_auctions():
            auction = SealedBidAuction.from_record(
                record,
                asset_registry=self.asset_registry,
                payout_rail=self.payout_rail,
                event_bus=self.event_bus,
            )
            self.auctions[auction.auction_id] = auction
        self.counter = Counter(current=self.storage_manager.get_counter("auction_id", 1))
        logger.info(f"Loaded {len(self.auctions)} auctions from storage")

    @contextmanager
    def _transaction(self):
        """
        Make one house operation a single database write.

        Covers the auction row, commitments, minted asset, payout balance,
        events and counters. Rejected operations change nothing.
        """
        if not self.storage_manager:
            yield
            return

        try:
            with self.storage_manager.transaction(rejections=(AuctionError, ValueError)):
                yield
                for event in self._pending_events:
                    self.storage_manager.append_event(event.to_dict())
        finally:
            self._pending_events.clear()

    def _persist(self, auction: SealedBidAuction) -> None:
        if self.storage_manager:
            self.storage_manager.save_auction(auction.to_record())

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def create_auction(
        self,
        duration: int,
        fee_amount: Optional[int] = None,
        operator: Optional[str] = None,
    ) -> int:
        """
        Open a new auction accepting bids for `duration` seconds.

        Returns:
            The auction id
        """
        require(validate_duration(duration))
        fee = self.fee_amount if fee_amount is None else fee_amount
        require(validate_amount(fee, "fee_amount"))

        operator = operator or self.operator
        if operator is None:
            raise ValueError("No operator given and no default operator configured")

        now = self.clock.now()
        auction_id = self.counter.current
        auction = SealedBidAuction(
            auction_id=auction_id,
            deadline=now + duration,
            fee_amount=fee,
            asset_registry=self.asset_registry,
            access_guard=OperatorGuard(operator),
            payout_rail=self.payout_rail,
            event_bus=self.event_bus,
            created_at=now,
        )

        if self.storage_manager:
            with self._transaction():
                self.storage_manager.save_auction(auction.to_record(), next_id=auction_id + 1)

        self.counter.next()
        self.auctions[auction_id] = auction

        logger.info(f"Auction {auction_id} created: deadline={auction.deadline}, "
                    f"fee={fee}, operator={auction.operator}")
        return auction_id

    def get(self, auction_id: int) -> SealedBidAuction:
        auction = self.auctions.get(auction_id)
        if auction is None:
            raise StateError("unknown auction")
        return auction

    def list_auctions(self) -> List[SealedBidAuction]:
        return [self.auctions[k] for k in sorted(self.auctions)]

    # =========================================================================
    # Operations
    # =========================================================================

    def place_bid(self, auction_id: int, commitment_hash: bytes, payment_amount: int, caller: str) -> Commitment:
        auction = self.get(auction_id)
        with self._transaction():
            commitment = auction.place_bid(commitment_hash, payment_amount, caller, self.clock.now())
            self._persist(auction)
        return commitment

    def reveal_bid(self, auction_id: int, bid_value: int, nonce: int, caller: str) -> bool:
        auction = self.get(auction_id)
        with self._transaction():
            leading = auction.reveal_bid(bid_value, nonce, caller, self.clock.now())
            self._persist(auction)
        return leading

    def finalize_auction(self, auction_id: int, asset_metadata: str, caller: str) -> FinalizeResult:
        auction = self.get(auction_id)
        payout_error = None
        with self._transaction():
            try:
                result = auction.finalize_auction(asset_metadata, caller, self.clock.now())
            except PayoutError as e:
                # The auction closed and minted before the payout failed
                payout_error = e
            self._persist(auction)

        if payout_error is not None:
            raise payout_error
        return result

    def withdraw_funds(self, auction_id: int, caller: str) -> int:
        auction = self.get(auction_id)
        with self._transaction():
            amount = auction.withdraw_funds(caller)
            self._persist(auction)
        return amount

    def get_status(self, auction_id: int) -> AuctionStatus:
        return self.get(auction_id).get_status(self.clock.now())


__all__ = ["AuctionHouse"]
