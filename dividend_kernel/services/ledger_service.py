"""
LedgerService -- the public operation surface of one dividend ledger.

Responsibility:
    Single entry point for hosts (CLI, applications, tests): creation,
    mint, deposit, transfer, settlement, withdrawal, and read queries.
    Orchestrates the period-log, holder, settlement and withdrawal services
    and binds the structured-log context (ledger_id, actor, operation) for
    the duration of each call.

Architecture position:
    Kernel > Services -- imperative shell facade.

Invariants enforced:
    - Authorization: mint requires the admin (injected identity check);
      transfer and withdrawal always act on the caller's own holdings.
    - Atomicity is the caller's: every method flushes only.  Run each call
      inside ``session_scope()`` (or equivalent) so a rejected call leaves
      no partial state.

Failure modes:
    - InvalidConfigError from create() for a non-positive period length or
      a blank admin.
    - Every typed error raised by the underlying services propagates
      unchanged.

Usage:
    with session_scope() as session:
        ledger = LedgerService.create(session, admin="0xadmin", period_seconds=604800)
        ledger.mint("0xadmin", "0xalice", 10)
        ledger.deposit("0xpayer", 1_000)
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from dividend_kernel.domain.clock import Clock, SystemClock
from dividend_kernel.domain.dtos import (
    DepositInfo,
    HolderLogInfo,
    HolderSummary,
    LedgerInfo,
    PeriodLogInfo,
    WithdrawalInfo,
)
from dividend_kernel.domain.periods import validate_period_seconds
from dividend_kernel.exceptions import InvalidConfigError
from dividend_kernel.logging_config import LogContext, get_logger
from dividend_kernel.models.ledger import Ledger
from dividend_kernel.selectors.ledger_selector import LedgerSelector
from dividend_kernel.services.holder_service import HolderService, IdentityCheck
from dividend_kernel.services.period_log_service import PeriodLogService
from dividend_kernel.services.settlement_service import SettlementService
from dividend_kernel.services.withdrawal_service import PayoutGateway, WithdrawalService

logger = get_logger("services.ledger")


class LedgerService:
    """
    Facade over one ledger.

    Contract:
        Construct with an open session and a ledger id (or via
        ``create()``).  The clock, identity check and payout gateway are
        injected so tests and hosts can substitute their own.
    """

    def __init__(
        self,
        session: Session,
        ledger_id: UUID,
        clock: Clock | None = None,
        identity_equal: IdentityCheck | None = None,
        payout_gateway: PayoutGateway | None = None,
    ):
        self.session = session
        self.ledger_id = ledger_id
        self._clock = clock or SystemClock()
        self._period_logs = PeriodLogService(session, ledger_id, self._clock)
        self._holders = HolderService(session, ledger_id, self._clock, identity_equal)
        self._settlement = SettlementService(session, ledger_id, self._clock)
        self._withdrawals = WithdrawalService(
            session, ledger_id, self._clock, payout_gateway
        )
        self._selector = LedgerSelector(session, ledger_id, self._clock)

    @classmethod
    def create(
        cls,
        session: Session,
        admin: str,
        period_seconds: int,
        clock: Clock | None = None,
        identity_equal: IdentityCheck | None = None,
        payout_gateway: PayoutGateway | None = None,
    ) -> "LedgerService":
        """
        Create a ledger whose period 0 starts now.

        Raises:
            InvalidConfigError: period_seconds is not a positive integer,
                or admin is blank.
        """
        clock = clock or SystemClock()
        try:
            validate_period_seconds(period_seconds)
            if not admin or not admin.strip():
                raise InvalidConfigError("admin", admin, "must be non-empty")
        except InvalidConfigError as exc:
            logger.warning(
                "ledger_creation_rejected",
                extra={"field": exc.field, "reason": exc.reason},
            )
            raise

        ledger = Ledger(
            admin=admin,
            period_seconds=period_seconds,
            created_at=clock.now(),
            total_shares=0,
            settled_through=-1,
        )
        session.add(ledger)
        session.flush()

        logger.info(
            "ledger_created",
            extra={
                "ledger_id": str(ledger.id),
                "admin": admin,
                "period_seconds": period_seconds,
            },
        )
        return cls(
            session,
            ledger.id,
            clock=clock,
            identity_equal=identity_equal,
            payout_gateway=payout_gateway,
        )

    def _bind(self, operation: str, actor: str | None = None):
        return LogContext.bind(
            ledger_id=str(self.ledger_id), actor=actor, operation=operation
        )

    # -------------------------------------------------------------------------
    # Mutating operations
    # -------------------------------------------------------------------------

    def mint(self, actor: str, to: str, amount: int) -> HolderSummary:
        with self._bind("mint", actor):
            return self._holders.mint(actor, to, amount)

    def deposit(self, depositor: str, amount: int) -> DepositInfo:
        with self._bind("deposit", depositor):
            return self._period_logs.record_deposit(depositor, amount)

    def transfer(self, actor: str, to: str, amount: int) -> HolderSummary:
        with self._bind("transfer", actor):
            return self._holders.transfer(actor, to, amount)

    def settle_period(self, period_index: int) -> PeriodLogInfo:
        with self._bind("settle_period"):
            return self._settlement.settle_period(period_index)

    def settle_elapsed_periods(self) -> list[PeriodLogInfo]:
        with self._bind("settle_elapsed_periods"):
            return self._settlement.settle_elapsed_periods()

    def settle_holder_log(self, holder: str, period_index: int) -> HolderLogInfo:
        with self._bind("settle_holder_log"):
            return self._settlement.settle_holder_log(holder, period_index)

    def settle_holder_through(self, holder: str, through_index: int) -> list[HolderLogInfo]:
        with self._bind("settle_holder_through"):
            return self._settlement.settle_holder_through(holder, through_index)

    def withdraw_to(self, actor: str, destination: str) -> WithdrawalInfo:
        with self._bind("withdraw", actor):
            return self._withdrawals.withdraw_to(actor, destination)

    # -------------------------------------------------------------------------
    # Read queries
    # -------------------------------------------------------------------------

    def get_ledger(self) -> LedgerInfo:
        return self._selector.get_ledger()

    def get_period_log(self, period_index: int) -> PeriodLogInfo:
        return self._selector.get_period_log(period_index)

    def get_holder_log(self, holder: str, period_index: int) -> HolderLogInfo:
        return self._selector.get_holder_log(holder, period_index)

    def get_holder_summary(self, holder: str) -> HolderSummary:
        return self._selector.get_holder_summary(holder)

    def balance_of(self, holder: str) -> int:
        return self._selector.balance_of(holder)

    def get_shares(self) -> int:
        return self._selector.get_shares()

    def get_period_index(self) -> int:
        return self._selector.get_period_index()

    def get_period_index_at(self, moment: datetime) -> int:
        return self._selector.get_period_index_at(moment)

    @property
    def selector(self) -> LedgerSelector:
        return self._selector
