"""Domain models for the dividend kernel."""

from dividend_kernel.models.holder import HolderAccount, HolderLog
from dividend_kernel.models.ledger import Ledger
from dividend_kernel.models.payment import Deposit, Withdrawal
from dividend_kernel.models.period_log import PeriodLog

__all__ = [
    "Ledger",
    "PeriodLog",
    "HolderAccount",
    "HolderLog",
    "Deposit",
    "Withdrawal",
]
