"""
Data Transfer Objects -- immutable snapshots returned across the kernel
boundary.

Services and selectors return these, never ORM entities, so callers cannot
mutate persisted state by accident and so reads of never-written indices can
return zero-valued records without creating rows.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class LedgerInfo:
    """Pure domain representation of a ledger."""

    id: UUID
    admin: str
    period_seconds: int
    created_at: datetime
    total_shares: int
    settled_through: int

    @property
    def next_unsettled_index(self) -> int:
        return self.settled_through + 1


@dataclass(frozen=True)
class PeriodLogInfo:
    """
    Snapshot of one global period log.

    ``total_shares_snapshot`` and ``per_share_amount`` are meaningful only
    when ``settled`` is True; they read as 0 before that.
    """

    period_index: int
    received_amount: int = 0
    carried_amount: int = 0
    shares_delta: int = 0
    settled: bool = False
    total_shares_snapshot: int = 0
    per_share_amount: int = 0
    settled_at: datetime | None = None

    @property
    def pool(self) -> int:
        return self.received_amount + self.carried_amount


@dataclass(frozen=True)
class HolderLogInfo:
    """Snapshot of one holder's log for one period."""

    holder: str
    period_index: int
    shares_increased: int = 0
    shares_decreased: int = 0
    settled: bool = False
    total_shares_snapshot: int = 0
    rewarded_amount: int = 0


@dataclass(frozen=True)
class HolderSummary:
    """Live balance and amount owed to a holder."""

    holder: str
    current_shares: int = 0
    unpaid_amount: int = 0
    settled_through: int = -1


@dataclass(frozen=True)
class DepositInfo:
    """One accepted incoming payment."""

    id: UUID
    depositor: str
    amount: int
    period_index: int
    received_at: datetime


@dataclass(frozen=True)
class WithdrawalInfo:
    """One payout of a holder's unpaid amount."""

    id: UUID
    holder: str
    destination: str
    amount: int
    paid_at: datetime
