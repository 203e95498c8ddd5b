"""
Escrow - custody of the application fees collected at commit time.

Accounting invariant: until the balance is released,

    balance == fee_amount * number_of_deposits

and after a successful release the balance is zero. A failed release
leaves the balance untouched.
"""

from dataclasses import dataclass, field
from typing import Dict

from sealbid.utils.logger import get_logger

logger = get_logger("escrow")


@dataclass
class Escrow:
    """
    Fee escrow for a single auction.

    Attributes:
        fee_amount: Fixed fee per commitment
        balance: Funds currently held
        deposits: Per-bidder amount deposited
        total_released: Funds paid out so far
    """
    fee_amount: int
    balance: int = 0
    deposits: Dict[str, int] = field(default_factory=dict)
    total_released: int = 0

    @property
    def total_collected(self) -> int:
        return sum(self.deposits.values())

    def deposit(self, bidder: str, amount: int) -> None:
        """Take custody of a bidder's fee."""
        if amount != self.fee_amount:
            raise ValueError(f"Escrow only accepts the fee ({self.fee_amount}), got {amount}")
        if bidder in self.deposits:
            raise ValueError(f"Bidder {bidder} already deposited")

        self.deposits[bidder] = amount
        self.balance += amount

    def release(self, recipient: str, payout_rail) -> int:
        """
        Transfer the entire balance to `recipient`.

        Args:
            recipient: Payout destination
            payout_rail: Object with transfer(recipient, amount)

        Returns:
            Amount released (0 when nothing was held)
        """
        amount = self.balance
        if amount == 0:
            return 0

        payout_rail.transfer(recipient, amount)

        self.balance = 0
        self.total_released += amount
        logger.info(f"Released {amount} from escrow to {recipient}")
        return amount

    def expected_balance(self, commit_count: int) -> int:
        return self.fee_amount * commit_count

    def check_invariant(self, commit_count: int) -> bool:
        """Held funds plus released funds equal fee * commitments."""
        return self.balance + self.total_released == self.expected_balance(commit_count)


__all__ = ["Escrow"]
