"""
Auction error taxonomy.

Every rejected operation raises exactly one of these; no state is written
before the error is raised.
"""


class AuctionError(Exception):
    """Base class for auction-specific errors."""

    kind = "AuctionError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PhaseError(AuctionError):
    """Operation is not valid in the auction's current phase."""

    kind = "PhaseError"


class DuplicateBidError(PhaseError):
    """Caller already holds a commitment in this auction."""

    kind = "DuplicateBidError"


class PaymentError(AuctionError):
    """Attached payment differs from the required fee."""

    kind = "PaymentError"


class StateError(AuctionError):
    """A precondition about existing records does not hold."""

    kind = "StateError"


class IntegrityError(AuctionError):
    """Revealed (value, nonce) does not hash to the stored commitment."""

    kind = "IntegrityError"


class AuthError(AuctionError):
    """Caller lacks the required capability."""

    kind = "AuthError"


class PayoutError(AuctionError):
    """
    Transfer of escrowed funds failed.

    Raised by finalize after the auction is already closed; `result` holds
    the finalization outcome so the caller can still see the winner and
    minted asset.
    """

    kind = "PayoutError"

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


__all__ = [
    "AuctionError",
    "PhaseError",
    "DuplicateBidError",
    "PaymentError",
    "StateError",
    "IntegrityError",
    "AuthError",
    "PayoutError",
]
