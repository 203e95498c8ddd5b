"""
State module - balances that receive escrow payouts.
"""

from sealbid.core.state.ledger import BalanceLedger, LedgerPayoutRail, PayoutRail

__all__ = ["BalanceLedger", "LedgerPayoutRail", "PayoutRail"]
