"""
PeriodLogService -- the global per-period accounting chain.

Responsibility:
    Materializes period logs on first write and accumulates what the open
    period receives: deposits, newly minted shares, and the remainder carried
    in from the previous period's settlement.

Architecture position:
    Kernel > Services -- imperative shell.
    Used by HolderService (mint), SettlementService (carry-forward), and the
    LedgerService facade (deposit).

Invariants enforced:
    - Sparse chain: a row exists at an index only after a write there.
    - Deposits and share deltas always land on the CURRENT period, resolved
      through the injected clock at call time.
    - Flush-only: never commits or rolls back the session.

Failure modes:
    - InvalidAmountError for non-positive deposits or share deltas.
    - InvalidPeriodIndexError for a negative carry-forward target.
"""

from sqlalchemy import select

from dividend_kernel.domain.dtos import DepositInfo
from dividend_kernel.exceptions import InvalidAmountError, InvalidPeriodIndexError
from dividend_kernel.logging_config import get_logger
from dividend_kernel.models.payment import Deposit
from dividend_kernel.models.period_log import PeriodLog
from dividend_kernel.services.base import LedgerBoundService

logger = get_logger("services.period_log")


def require_positive(operation: str, amount: int) -> int:
    """Reject zero, negative, fractional, and non-integer quantities."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        logger.warning(
            "invalid_amount_rejected",
            extra={"operation": operation, "amount": repr(amount)},
        )
        raise InvalidAmountError(operation, amount)
    return amount


class PeriodLogService(LedgerBoundService):
    """
    Write side of the period log chain.

    Guarantees:
        - ``get_or_create()`` returns the same row for the same index within
          a session; a new row is zero-valued.
    """

    def find(self, period_index: int) -> PeriodLog | None:
        return self.session.execute(
            select(PeriodLog).where(
                PeriodLog.ledger_id == self.ledger_id,
                PeriodLog.period_index == period_index,
            )
        ).scalar_one_or_none()

    def get_or_create(self, period_index: int) -> PeriodLog:
        if period_index < 0:
            raise InvalidPeriodIndexError(period_index)
        log = self.find(period_index)
        if log is None:
            log = PeriodLog.empty(self.ledger_id, period_index)
            self.session.add(log)
            self.session.flush()
            logger.debug(
                "period_log_materialized",
                extra={"period_index": period_index},
            )
        return log

    def record_deposit(self, depositor: str, amount: int) -> DepositInfo:
        """
        Attribute ``amount`` to the current period's receipts.

        Anyone may deposit; there is no authorization check.
        """
        require_positive("deposit", amount)
        now = self._clock.now()
        period_index = self._resolver().index_at(now)

        log = self.get_or_create(period_index)
        log.received_amount += amount

        deposit = Deposit(
            ledger_id=self.ledger_id,
            depositor=depositor,
            amount=amount,
            period_index=period_index,
            received_at=now,
        )
        self.session.add(deposit)
        self.session.flush()

        logger.info(
            "deposit_recorded",
            extra={
                "depositor": depositor,
                "amount": amount,
                "period_index": period_index,
                "received_amount": log.received_amount,
            },
        )
        return DepositInfo(
            id=deposit.id,
            depositor=depositor,
            amount=amount,
            period_index=period_index,
            received_at=now,
        )

    def record_share_delta(self, amount: int) -> PeriodLog:
        """Add newly minted shares to the current period. Mint only."""
        require_positive("mint", amount)
        log = self.get_or_create(self.current_index())
        log.shares_delta += amount
        self.session.flush()
        return log

    def add_carry(self, period_index: int, amount: int) -> PeriodLog:
        """
        Add a settlement remainder to ``period_index``'s carried amount.

        The target log may not exist yet; it is created.  A zero remainder
        still materializes the log so the chain has no gap after a
        settlement.
        """
        log = self.get_or_create(period_index)
        log.carried_amount += amount
        self.session.flush()
        return log
