"""
Pure domain layer.

This module contains pure data transfer objects and domain logic
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (time is read only through an injected Clock)

All domain objects are immutable and deterministic.
"""

from dividend_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from dividend_kernel.domain.dtos import (
    DepositInfo,
    HolderLogInfo,
    HolderSummary,
    LedgerInfo,
    PeriodLogInfo,
    WithdrawalInfo,
)
from dividend_kernel.domain.periods import PeriodResolver
from dividend_kernel.domain.settlement import (
    HolderSettlement,
    PeriodSettlement,
    settle_holder,
    settle_pool,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "DepositInfo",
    "HolderLogInfo",
    "HolderSummary",
    "LedgerInfo",
    "PeriodLogInfo",
    "WithdrawalInfo",
    "PeriodResolver",
    "HolderSettlement",
    "PeriodSettlement",
    "settle_holder",
    "settle_pool",
]
