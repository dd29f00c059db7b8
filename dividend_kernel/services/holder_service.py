"""
HolderService -- share balances and per-holder log chains.

Responsibility:
    Mints shares (admin only) and transfers them between holders, updating
    the live balances immediately and the open period's holder logs and
    period log for later settlement.

Architecture position:
    Kernel > Services -- imperative shell.
    Uses PeriodLogService to record minted shares on the period chain.

Invariants enforced:
    SHARE_CONSERVATION -- ``Ledger.total_shares`` changes only on mint, by
        exactly the minted amount; transfers move balances without touching
        ``total_shares`` or the period's ``shares_delta``.
    - Holder accounts and holder logs are materialized on first reference.
    - Flush-only: never commits or rolls back the session.

Failure modes:
    - UnauthorizedError: mint by a caller the identity check does not
      match to the ledger admin.
    - InvalidAmountError: non-positive mint or transfer amount.
    - InsufficientSharesError: transfer larger than the sender's balance.
"""

import operator
from typing import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from dividend_kernel.domain.clock import Clock
from dividend_kernel.domain.dtos import HolderSummary
from dividend_kernel.exceptions import (
    InsufficientSharesError,
    InvalidPeriodIndexError,
    UnauthorizedError,
)
from dividend_kernel.logging_config import get_logger
from dividend_kernel.models.holder import HolderAccount, HolderLog
from dividend_kernel.selectors.ledger_selector import holder_to_summary
from dividend_kernel.services.base import LedgerBoundService
from dividend_kernel.services.period_log_service import PeriodLogService, require_positive

logger = get_logger("services.holder")

IdentityCheck = Callable[[str, str], bool]


class HolderService(LedgerBoundService):
    """
    Write side of the holder registry.

    Contract:
        ``identity_equal(actor, admin)`` decides whether a caller acts as the
        admin.  It defaults to plain string equality; hosts with richer
        identities (checksummed addresses, delegated keys) inject their own.
    """

    def __init__(
        self,
        session: Session,
        ledger_id: UUID,
        clock: Clock | None = None,
        identity_equal: IdentityCheck | None = None,
    ):
        super().__init__(session, ledger_id, clock)
        self._identity_equal = identity_equal or operator.eq
        self._period_logs = PeriodLogService(session, ledger_id, self._clock)

    # -------------------------------------------------------------------------
    # Lazy materialization
    # -------------------------------------------------------------------------

    def find_holder(self, address: str) -> HolderAccount | None:
        return self.session.execute(
            select(HolderAccount).where(
                HolderAccount.ledger_id == self.ledger_id,
                HolderAccount.address == address,
            )
        ).scalar_one_or_none()

    def get_or_create_holder(self, address: str) -> HolderAccount:
        holder = self.find_holder(address)
        if holder is None:
            holder = HolderAccount.empty(self.ledger_id, address)
            self.session.add(holder)
            self.session.flush()
            logger.debug("holder_materialized", extra={"holder": address})
        return holder

    def find_log(self, holder: HolderAccount, period_index: int) -> HolderLog | None:
        return self.session.execute(
            select(HolderLog).where(
                HolderLog.holder_id == holder.id,
                HolderLog.period_index == period_index,
            )
        ).scalar_one_or_none()

    def get_or_create_log(self, holder: HolderAccount, period_index: int) -> HolderLog:
        if period_index < 0:
            raise InvalidPeriodIndexError(period_index)
        log = self.find_log(holder, period_index)
        if log is None:
            log = HolderLog.empty(holder.id, period_index)
            self.session.add(log)
            self.session.flush()
        return log

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def require_admin(self, actor: str, operation: str) -> None:
        ledger = self._get_ledger()
        if not self._identity_equal(actor, ledger.admin):
            logger.warning(
                "unauthorized_rejected",
                extra={"operation": operation, "required_role": "admin"},
            )
            raise UnauthorizedError(actor, operation, "admin")

    def mint(self, actor: str, to: str, amount: int) -> HolderSummary:
        """
        Issue ``amount`` new shares to ``to``.

        Postconditions:
            - total_shares and to's balance grow by ``amount``.
            - to's holder log and the period log at the current index
              record the increase.
            - unpaid amounts are untouched.
        """
        self.require_admin(actor, "mint")
        require_positive("mint", amount)

        ledger = self._get_ledger(for_update=True)
        period_index = self.current_index()

        holder = self.get_or_create_holder(to)
        log = self.get_or_create_log(holder, period_index)

        ledger.total_shares += amount
        holder.current_shares += amount
        log.shares_increased += amount
        self._period_logs.record_share_delta(amount)
        self.session.flush()

        logger.info(
            "shares_minted",
            extra={
                "holder": to,
                "amount": amount,
                "period_index": period_index,
                "total_shares": ledger.total_shares,
            },
        )
        return holder_to_summary(holder)

    def transfer(self, sender: str, to: str, amount: int) -> HolderSummary:
        """
        Move ``amount`` shares from ``sender`` to ``to``.

        The caller is the sender; there is no transfer-on-behalf.
        """
        require_positive("transfer", amount)
        self._get_ledger(for_update=True)

        source = self.find_holder(sender)
        available = source.current_shares if source is not None else 0
        if available < amount:
            logger.warning(
                "insufficient_shares_rejected",
                extra={"holder": sender, "requested": amount, "available": available},
            )
            raise InsufficientSharesError(sender, amount, available)

        period_index = self.current_index()
        target = self.get_or_create_holder(to)
        source_log = self.get_or_create_log(source, period_index)
        target_log = self.get_or_create_log(target, period_index)

        source.current_shares -= amount
        target.current_shares += amount
        source_log.shares_decreased += amount
        target_log.shares_increased += amount
        self.session.flush()

        logger.info(
            "shares_transferred",
            extra={
                "sender": sender,
                "recipient": to,
                "amount": amount,
                "period_index": period_index,
            },
        )
        return holder_to_summary(source)

    def balance_of(self, address: str) -> int:
        holder = self.find_holder(address)
        return holder.current_shares if holder is not None else 0
