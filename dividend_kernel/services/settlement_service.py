"""
SettlementService -- finalizes period logs and holder logs.

Responsibility:
    Advances logs from "open" to "settled", strictly in chain order:

        period log i    needs  period i elapsed, period log i - 1 settled
        holder log i    needs  period log i settled, holder log i - 1 settled

    Settling a period log divides its pool (receipts + carry) among the
    shares outstanding at its end and carries the integer-division
    remainder into period i + 1.  Settling a holder log credits the holder
    with per-share payout times their ending balance.

Architecture position:
    Kernel > Services -- imperative shell around the pure arithmetic in
    domain/settlement.py.

Invariants enforced:
    PERIOD_ORDER / HOLDER_ORDER -- explicit precondition checks against the
        O(1) ``settled_through`` cursors kept on Ledger and HolderAccount.
    REMAINDER_CARRY_FORWARD -- the remainder is always written to log i + 1.
    POOL_CONSERVATION -- delegated to domain.settlement.settle_pool().
    - Settlement reflects the totals accumulated at settlement time; any
      number of mints, transfers, and deposits may precede it.
    - Flush-only: never commits or rolls back the session.

Failure modes:
    - NotYetElapsedError, OutOfOrderError, AlreadySettledError (checked in
      that order).  No state is written before all three checks pass.
    - InvalidPeriodIndexError for negative indices.
"""

from typing import NoReturn
from uuid import UUID

from sqlalchemy.orm import Session

from dividend_kernel.domain.clock import Clock
from dividend_kernel.domain.dtos import HolderLogInfo, PeriodLogInfo
from dividend_kernel.domain.settlement import settle_holder, settle_pool
from dividend_kernel.exceptions import (
    AlreadySettledError,
    InvalidPeriodIndexError,
    NotYetElapsedError,
    OutOfOrderError,
    SettlementError,
)
from dividend_kernel.logging_config import get_logger
from dividend_kernel.selectors.ledger_selector import holder_log_to_dto, period_log_to_dto
from dividend_kernel.services.base import LedgerBoundService
from dividend_kernel.services.holder_service import HolderService
from dividend_kernel.services.period_log_service import PeriodLogService

logger = get_logger("services.settlement")


class SettlementService(LedgerBoundService):
    """
    Settlement engine for one ledger.

    Contract:
        Settlement calls are explicit and caller-triggered.  Deferring them
        only delays payout; it never changes the outcome.
    """

    def __init__(self, session: Session, ledger_id: UUID, clock: Clock | None = None):
        super().__init__(session, ledger_id, clock)
        self._period_logs = PeriodLogService(session, ledger_id, self._clock)
        self._holders = HolderService(session, ledger_id, self._clock)

    # -------------------------------------------------------------------------
    # Period logs
    # -------------------------------------------------------------------------

    def settle_period(self, period_index: int) -> PeriodLogInfo:
        """
        Settle the global log of ``period_index``.

        Postconditions:
            - log.total_shares_snapshot = previous snapshot + shares_delta
            - log.per_share_amount = pool // snapshot (0 when no shares)
            - log i + 1 carried_amount += pool - per_share * snapshot
            - ledger.settled_through = period_index
        """
        if period_index < 0:
            self._reject(InvalidPeriodIndexError(period_index))

        ledger = self._get_ledger(for_update=True)
        current_index = self.current_index()

        if period_index >= current_index:
            self._reject(NotYetElapsedError(period_index, current_index=current_index))
        if period_index > ledger.settled_through + 1:
            self._reject(OutOfOrderError(period_index, period_index - 1))
        if period_index <= ledger.settled_through:
            self._reject(AlreadySettledError(period_index))

        previous_snapshot = 0
        if period_index > 0:
            previous_snapshot = self._period_logs.find(period_index - 1).total_shares_snapshot

        log = self._period_logs.get_or_create(period_index)
        outcome = settle_pool(
            previous_snapshot=previous_snapshot,
            shares_delta=log.shares_delta,
            received_amount=log.received_amount,
            carried_amount=log.carried_amount,
        )

        log.total_shares_snapshot = outcome.total_shares_snapshot
        log.per_share_amount = outcome.per_share_amount
        log.settled = True
        log.settled_at = self._clock.now()
        ledger.settled_through = period_index
        self.session.flush()

        self._period_logs.add_carry(period_index + 1, outcome.remainder)

        logger.info(
            "period_settled",
            extra={
                "period_index": period_index,
                "total_shares_snapshot": outcome.total_shares_snapshot,
                "pool": outcome.pool,
                "per_share_amount": outcome.per_share_amount,
                "remainder": outcome.remainder,
            },
        )
        return period_log_to_dto(log)

    def settle_elapsed_periods(self) -> list[PeriodLogInfo]:
        """Settle every elapsed, unsettled period in order."""
        ledger = self._get_ledger(for_update=True)
        current_index = self.current_index()
        return [
            self.settle_period(index)
            for index in range(ledger.settled_through + 1, current_index)
        ]

    # -------------------------------------------------------------------------
    # Holder logs
    # -------------------------------------------------------------------------

    def settle_holder_log(self, address: str, period_index: int) -> HolderLogInfo:
        """
        Settle ``address``'s log of ``period_index`` and credit the reward.

        Postconditions:
            - log.total_shares_snapshot = previous + increased - decreased
            - log.rewarded_amount = per_share(period) * snapshot
            - holder.unpaid_amount += rewarded_amount
            - holder.settled_through = period_index
        """
        if period_index < 0:
            self._reject(InvalidPeriodIndexError(period_index))

        ledger = self._get_ledger(for_update=True)
        if period_index > ledger.settled_through:
            self._reject(NotYetElapsedError(period_index, holder=address))

        holder = self._holders.find_holder(address)
        settled_through = holder.settled_through if holder is not None else -1
        if period_index > settled_through + 1:
            self._reject(OutOfOrderError(period_index, period_index - 1, holder=address))
        if period_index <= settled_through:
            self._reject(AlreadySettledError(period_index, holder=address))

        if holder is None:
            holder = self._holders.get_or_create_holder(address)

        previous_snapshot = 0
        if period_index > 0:
            previous_snapshot = self._holders.find_log(
                holder, period_index - 1
            ).total_shares_snapshot

        period_log = self._period_logs.find(period_index)
        log = self._holders.get_or_create_log(holder, period_index)
        outcome = settle_holder(
            previous_snapshot=previous_snapshot,
            shares_increased=log.shares_increased,
            shares_decreased=log.shares_decreased,
            per_share_amount=period_log.per_share_amount,
        )

        log.total_shares_snapshot = outcome.total_shares_snapshot
        log.rewarded_amount = outcome.rewarded_amount
        log.settled = True
        holder.unpaid_amount += outcome.rewarded_amount
        holder.settled_through = period_index
        self.session.flush()

        logger.info(
            "holder_log_settled",
            extra={
                "holder": address,
                "period_index": period_index,
                "total_shares_snapshot": outcome.total_shares_snapshot,
                "rewarded_amount": outcome.rewarded_amount,
                "unpaid_amount": holder.unpaid_amount,
            },
        )
        return holder_log_to_dto(address, log)

    def settle_holder_through(self, address: str, through_index: int) -> list[HolderLogInfo]:
        """
        Settle ``address``'s logs from its cursor up to ``through_index``.

        Stops at the ledger's settled cursor: holder logs never overtake
        their period logs.  Returns the logs settled by this call, which is
        none when ``through_index`` is behind the holder's cursor (including
        the ledger's "nothing settled" value -1).
        """
        ledger = self._get_ledger(for_update=True)
        holder = self._holders.find_holder(address)
        first = holder.settled_through + 1 if holder is not None else 0
        last = min(through_index, ledger.settled_through)
        return [
            self.settle_holder_log(address, index)
            for index in range(first, last + 1)
        ]

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _reject(self, error: SettlementError | InvalidPeriodIndexError) -> NoReturn:
        logger.warning(
            "settlement_rejected",
            extra={
                "error_code": error.code,
                "period_index": error.period_index,
                "holder": getattr(error, "holder", None),
            },
        )
        raise error
