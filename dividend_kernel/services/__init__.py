"""Services for the dividend kernel (write side)."""

from dividend_kernel.services.holder_service import HolderService
from dividend_kernel.services.ledger_service import LedgerService
from dividend_kernel.services.period_log_service import PeriodLogService
from dividend_kernel.services.settlement_service import SettlementService
from dividend_kernel.services.withdrawal_service import PayoutGateway, WithdrawalService

__all__ = [
    "HolderService",
    "LedgerService",
    "PayoutGateway",
    "PeriodLogService",
    "SettlementService",
    "WithdrawalService",
]
