"""
sealbid Auction Module.

This module provides the sealed-bid auction system:
- Commit-reveal state machine with derived phases
- Fee escrow accounting
- Multi-instance auction house
"""

from sealbid.core.auction.commit_reveal import (
    SealedBidAuction,
    Commitment,
    AuctionPhase,
    AuctionStatus,
    FinalizeResult,
    derive_phase,
    create_commitment,
)

from sealbid.core.auction.escrow import Escrow

from sealbid.core.auction.house import AuctionHouse

__all__ = [
    # Commit-Reveal
    "SealedBidAuction",
    "Commitment",
    "AuctionPhase",
    "AuctionStatus",
    "FinalizeResult",
    "derive_phase",
    "create_commitment",
    # Escrow
    "Escrow",
    # House
    "AuctionHouse",
]
