"""
sealbid - Sealed-bid auctions

A commit-reveal auction engine integrating:
- Hash commitments binding bidders to hidden values
- Deadline-derived phases (open, reveal window, closed)
- Fee escrow released to the operator at finalization
- Asset minting for the winning bidder
"""

__version__ = "0.1.0"
