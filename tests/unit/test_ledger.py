"""
Tests for the balance ledger and its payout rail.
"""

import pytest

from sealbid.core.state import BalanceLedger, LedgerPayoutRail, PayoutRail


ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20


class TestBalanceLedger:
    """Tests for BalanceLedger."""

    def test_unknown_address_has_zero_balance(self):
        assert BalanceLedger().get_balance(ALICE) == 0

    def test_credit_accumulates(self):
        ledger = BalanceLedger()

        assert ledger.credit(ALICE, 10) == 10
        assert ledger.credit(ALICE, 5) == 15
        ledger.credit(BOB, 1)

        assert ledger.get_balance(ALICE) == 15
        assert ledger.total_credited == 16

    def test_credit_rejects_negative(self):
        ledger = BalanceLedger()
        with pytest.raises(ValueError):
            ledger.credit(ALICE, -1)
        assert ledger.total_credited == 0

    def test_credit_rejects_invalid_address(self):
        with pytest.raises(ValueError):
            BalanceLedger().credit("0x1234", 1)


class TestLedgerPayoutRail:
    """Tests for LedgerPayoutRail."""

    def test_transfer_credits_ledger(self):
        ledger = BalanceLedger()
        rail = LedgerPayoutRail(ledger)

        rail.transfer(ALICE, 42)

        assert ledger.get_balance(ALICE) == 42

    def test_satisfies_protocol(self):
        assert isinstance(LedgerPayoutRail(BalanceLedger()), PayoutRail)
