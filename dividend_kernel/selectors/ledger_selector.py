"""
Module: dividend_kernel.selectors.ledger_selector
Responsibility: Read queries over one ledger -- the ledger header, period
    logs, holder logs, holder summaries, period resolution, and payment
    totals.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - Indices never written and holders never seen read as zero-valued DTOs;
      no rows are created by a read.
    - Time is read only through the injected Clock.

Failure modes:
    - LedgerNotFoundError for an unknown ledger id.
    - InvalidPeriodIndexError for a negative index.
    - TimestampBeforeCreationError from get_period_index_at().
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from dividend_kernel.domain.clock import Clock, SystemClock
from dividend_kernel.domain.dtos import (
    HolderLogInfo,
    HolderSummary,
    LedgerInfo,
    PeriodLogInfo,
)
from dividend_kernel.domain.periods import PeriodResolver, as_utc
from dividend_kernel.exceptions import InvalidPeriodIndexError, LedgerNotFoundError
from dividend_kernel.models.holder import HolderAccount, HolderLog
from dividend_kernel.models.ledger import Ledger
from dividend_kernel.models.payment import Deposit, Withdrawal
from dividend_kernel.models.period_log import PeriodLog
from dividend_kernel.selectors.base import BaseSelector


# =============================================================================
# ORM -> DTO conversion (shared with the services)
# =============================================================================


def ledger_to_dto(ledger: Ledger) -> LedgerInfo:
    return LedgerInfo(
        id=ledger.id,
        admin=ledger.admin,
        period_seconds=ledger.period_seconds,
        created_at=as_utc(ledger.created_at),
        total_shares=ledger.total_shares,
        settled_through=ledger.settled_through,
    )


def period_log_to_dto(log: PeriodLog) -> PeriodLogInfo:
    return PeriodLogInfo(
        period_index=log.period_index,
        received_amount=log.received_amount,
        carried_amount=log.carried_amount,
        shares_delta=log.shares_delta,
        settled=log.settled,
        total_shares_snapshot=log.total_shares_snapshot,
        per_share_amount=log.per_share_amount,
        settled_at=as_utc(log.settled_at) if log.settled_at is not None else None,
    )


def holder_log_to_dto(address: str, log: HolderLog) -> HolderLogInfo:
    return HolderLogInfo(
        holder=address,
        period_index=log.period_index,
        shares_increased=log.shares_increased,
        shares_decreased=log.shares_decreased,
        settled=log.settled,
        total_shares_snapshot=log.total_shares_snapshot,
        rewarded_amount=log.rewarded_amount,
    )


def holder_to_summary(holder: HolderAccount) -> HolderSummary:
    return HolderSummary(
        holder=holder.address,
        current_shares=holder.current_shares,
        unpaid_amount=holder.unpaid_amount,
        settled_through=holder.settled_through,
    )


class LedgerSelector(BaseSelector):
    """
    Read-only queries for one ledger.

    Contract:
        Every method is pure with respect to persisted state.
    """

    def __init__(self, session: Session, ledger_id: UUID, clock: Clock | None = None):
        super().__init__(session)
        self.ledger_id = ledger_id
        self._clock = clock or SystemClock()

    def _ledger(self) -> Ledger:
        ledger = self.session.get(Ledger, self.ledger_id)
        if ledger is None:
            raise LedgerNotFoundError(str(self.ledger_id))
        return ledger

    def _resolver(self) -> PeriodResolver:
        ledger = self._ledger()
        return PeriodResolver(ledger.created_at, ledger.period_seconds)

    def _holder(self, address: str) -> HolderAccount | None:
        return self.session.execute(
            select(HolderAccount).where(
                HolderAccount.ledger_id == self.ledger_id,
                HolderAccount.address == address,
            )
        ).scalar_one_or_none()

    # -------------------------------------------------------------------------
    # Ledger header
    # -------------------------------------------------------------------------

    def get_ledger(self) -> LedgerInfo:
        return ledger_to_dto(self._ledger())

    def get_shares(self) -> int:
        """Total shares outstanding right now."""
        return self._ledger().total_shares

    def get_period_index(self) -> int:
        return self._resolver().current_index(self._clock)

    def get_period_index_at(self, moment: datetime) -> int:
        return self._resolver().index_at(moment)

    # -------------------------------------------------------------------------
    # Logs
    # -------------------------------------------------------------------------

    def get_period_log(self, period_index: int) -> PeriodLogInfo:
        if period_index < 0:
            raise InvalidPeriodIndexError(period_index)
        self._ledger()
        log = self.session.execute(
            select(PeriodLog).where(
                PeriodLog.ledger_id == self.ledger_id,
                PeriodLog.period_index == period_index,
            )
        ).scalar_one_or_none()
        if log is None:
            return PeriodLogInfo(period_index=period_index)
        return period_log_to_dto(log)

    def list_period_logs(self) -> list[PeriodLogInfo]:
        """All materialized period logs in index order (gaps are omitted)."""
        rows = self.session.execute(
            select(PeriodLog)
            .where(PeriodLog.ledger_id == self.ledger_id)
            .order_by(PeriodLog.period_index)
        ).scalars()
        return [period_log_to_dto(log) for log in rows]

    def get_holder_log(self, address: str, period_index: int) -> HolderLogInfo:
        if period_index < 0:
            raise InvalidPeriodIndexError(period_index)
        self._ledger()
        holder = self._holder(address)
        if holder is None:
            return HolderLogInfo(holder=address, period_index=period_index)
        log = self.session.execute(
            select(HolderLog).where(
                HolderLog.holder_id == holder.id,
                HolderLog.period_index == period_index,
            )
        ).scalar_one_or_none()
        if log is None:
            return HolderLogInfo(holder=address, period_index=period_index)
        return holder_log_to_dto(address, log)

    # -------------------------------------------------------------------------
    # Holders
    # -------------------------------------------------------------------------

    def get_holder_summary(self, address: str) -> HolderSummary:
        self._ledger()
        holder = self._holder(address)
        if holder is None:
            return HolderSummary(holder=address)
        return holder_to_summary(holder)

    def balance_of(self, address: str) -> int:
        return self.get_holder_summary(address).current_shares

    def list_holders(self) -> list[HolderSummary]:
        rows = self.session.execute(
            select(HolderAccount)
            .where(HolderAccount.ledger_id == self.ledger_id)
            .order_by(HolderAccount.address)
        ).scalars()
        return [holder_to_summary(h) for h in rows]

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    def total_deposited(self) -> int:
        # Amounts are summed in Python: SQLite stores them as text.
        amounts = self.session.execute(
            select(Deposit.amount).where(Deposit.ledger_id == self.ledger_id)
        ).scalars()
        return sum(amounts, 0)

    def total_withdrawn(self) -> int:
        amounts = self.session.execute(
            select(Withdrawal.amount).where(Withdrawal.ledger_id == self.ledger_id)
        ).scalars()
        return sum(amounts, 0)

    def count_withdrawals(self, address: str) -> int:
        return self.session.execute(
            select(func.count(Withdrawal.id)).where(
                Withdrawal.ledger_id == self.ledger_id,
                Withdrawal.holder == address,
            )
        ).scalar_one()
