"""
Tests for the operator access guard.
"""

import pytest

from sealbid.core.access import AccessGuard, OperatorGuard
from sealbid.core.errors import AuthError


OPERATOR = "0x" + "0f" * 20
ALICE = "0x" + "a1" * 20


class TestOperatorGuard:

    def test_operator_is_authorized(self):
        guard = OperatorGuard(OPERATOR)
        assert guard.is_authorized(OPERATOR)
        assert not guard.is_authorized(ALICE)

    def test_case_insensitive(self):
        guard = OperatorGuard("0x" + "0F" * 20)
        assert guard.operator == OPERATOR
        assert guard.is_authorized(OPERATOR)

    def test_garbage_caller_is_not_authorized(self):
        assert not OperatorGuard(OPERATOR).is_authorized("operator")

    def test_invalid_operator_rejected(self):
        with pytest.raises(ValueError):
            OperatorGuard("0xabc")

    def test_transfer_operator(self):
        guard = OperatorGuard(OPERATOR)
        guard.transfer_operator(OPERATOR, ALICE)

        assert guard.operator == ALICE
        assert not guard.is_authorized(OPERATOR)

    def test_transfer_requires_operator(self):
        guard = OperatorGuard(OPERATOR)
        with pytest.raises(AuthError, match="not operator"):
            guard.transfer_operator(ALICE, ALICE)

    def test_satisfies_protocol(self):
        assert isinstance(OperatorGuard(OPERATOR), AccessGuard)
