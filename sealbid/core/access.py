"""
Access control - the capability check gating finalization.

A single operator identity owns an auction deployment. The guard is
injected into the engine rather than inherited, so swapping the policy
(multi-sig, role table) does not touch the state machine.
"""

from typing import Protocol, runtime_checkable

from sealbid.core.errors import AuthError
from sealbid.crypto import normalize_address
from sealbid.utils.logger import get_logger

logger = get_logger("access")


@runtime_checkable
class AccessGuard(Protocol):
    """Decides whether a caller holds the operator capability."""

    def is_authorized(self, caller: str) -> bool:
        ...

    @property
    def operator(self) -> str:
        ...


class OperatorGuard:
    """Single-owner guard: only `operator` is authorized."""

    def __init__(self, operator: str):
        self._operator = normalize_address(operator)

    @property
    def operator(self) -> str:
        return self._operator

    def is_authorized(self, caller: str) -> bool:
        try:
            return normalize_address(caller) == self._operator
        except ValueError:
            return False

    def transfer_operator(self, caller: str, new_operator: str) -> None:
        """Hand the operator capability to another identity."""
        if not self.is_authorized(caller):
            raise AuthError("not operator")

        new_operator = normalize_address(new_operator)
        logger.info(f"Operator transferred {self._operator} -> {new_operator}")
        self._operator = new_operator


__all__ = ["AccessGuard", "OperatorGuard"]
