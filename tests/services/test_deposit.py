"""Tests for deposits into the current period."""

import pytest

from dividend_kernel.exceptions import InvalidAmountError
from tests.conftest import PAYER


class TestDeposit:
    def test_credits_current_period(self, ledger):
        deposit = ledger.deposit(PAYER, 10)
        assert deposit.period_index == 0
        assert ledger.get_period_log(0).received_amount == 10

    def test_anyone_may_deposit(self, ledger):
        ledger.deposit("0xanyone", 1)
        ledger.deposit("0xsomeone-else", 2)
        assert ledger.get_period_log(0).received_amount == 3

    def test_follows_clock(self, ledger, advance_periods):
        ledger.deposit(PAYER, 1)
        advance_periods(4)
        deposit = ledger.deposit(PAYER, 2)
        assert deposit.period_index == 4
        assert ledger.get_period_log(4).received_amount == 2
        assert ledger.get_period_log(0).received_amount == 1

    def test_without_shares_is_accepted(self, ledger):
        ledger.deposit(PAYER, 10)
        assert ledger.get_shares() == 0

    def test_huge_amount_exact(self, ledger):
        amount = 2**200 + 1
        ledger.deposit(PAYER, amount)
        ledger.deposit(PAYER, 1)
        assert ledger.get_period_log(0).received_amount == amount + 1
        assert ledger.selector.total_deposited() == amount + 1

    @pytest.mark.parametrize("amount", [0, -10, 1.5, True])
    def test_disallowed_amount_rejected(self, ledger, amount):
        with pytest.raises(InvalidAmountError):
            ledger.deposit(PAYER, amount)
        assert ledger.get_period_log(0).received_amount == 0

    def test_logged(self, ledger, captured_logs):
        ledger.deposit(PAYER, 7)
        recorded = [r for r in captured_logs() if r["message"] == "deposit_recorded"]
        assert recorded[0]["amount"] == 7
        assert recorded[0]["period_index"] == 0
