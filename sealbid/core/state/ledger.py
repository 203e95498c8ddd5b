"""
Ledger - account balances receiving auction payouts.

Conceptual Background:
---------------------
Escrowed fees leave the auction engine through a PayoutRail. The engine
only knows `transfer(recipient, amount)`; where the money lands is the
rail's business. LedgerPayoutRail credits an in-process BalanceLedger,
which is what the CLI and tests use. A rail backed by a real settlement
network would implement the same method and raise on failure.
"""

from typing import Dict, Protocol, runtime_checkable

from sealbid.crypto import normalize_address
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import require, validate_amount

logger = get_logger("ledger")


@runtime_checkable
class PayoutRail(Protocol):
    """Moves funds out of escrow. Raises on failure; no partial transfers."""

    def transfer(self, recipient: str, amount: int) -> None:
        ...


class BalanceLedger:
    """
    Account-based balance table.

    Attributes:
        balances: Mapping of address to balance
        total_credited: Sum of every credit ever applied
    """

    def __init__(self, storage_manager=None):
        """
        Initialize the ledger.

        Args:
            storage_manager: Persistence manager. None = in-memory only.
        """
        self.balances: Dict[str, int] = {}
        self.total_credited = 0
        self.storage_manager = storage_manager

        if storage_manager:
            self._load_from_storage()
            storage_manager.add_rollback_listener(self._load_from_storage)

    def _load_from_storage(self) -> None:
        self.balances = dict(self.storage_manager.load_balances())
        self.total_credited = sum(self.balances.values())
        logger.info(f"Loaded {len(self.balances)} balances from storage")

    def get_balance(self, address: str) -> int:
        return self.balances.get(normalize_address(address), 0)

    def credit(self, address: str, amount: int) -> int:
        """
        Add `amount` to an address.

        Returns:
            The new balance
        """
        address = normalize_address(address)
        require(validate_amount(amount))

        new_balance = self.balances.get(address, 0) + amount
        if self.storage_manager:
            self.storage_manager.save_balance(address, new_balance)

        self.balances[address] = new_balance
        self.total_credited += amount

        logger.debug(f"Credited {amount} to {address} (balance {new_balance})")
        return new_balance


class LedgerPayoutRail:
    """PayoutRail that credits a BalanceLedger."""

    def __init__(self, ledger: BalanceLedger):
        self.ledger = ledger

    def transfer(self, recipient: str, amount: int) -> None:
        self.ledger.credit(recipient, amount)
        logger.info(f"Paid out {amount} to {recipient}")


__all__ = ["PayoutRail", "BalanceLedger", "LedgerPayoutRail"]
