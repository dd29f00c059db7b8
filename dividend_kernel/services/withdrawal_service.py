"""
WithdrawalService -- pays a holder's unpaid rewards to a destination.

Responsibility:
    Zeroes the calling holder's ``unpaid_amount``, records a Withdrawal row,
    and hands the payment to the host's value-transfer primitive
    (a PayoutGateway).

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - After withdraw_to(), the holder's unpaid_amount is 0 and the recorded
      amount equals the unpaid amount before the call.
    - Withdrawal always succeeds for a known or unknown holder; with nothing
      owed it records a zero payout.
    - Flush-only: a gateway failure propagates and the caller's rollback
      restores the unpaid amount.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from sqlalchemy.orm import Session

from dividend_kernel.domain.clock import Clock
from dividend_kernel.domain.dtos import WithdrawalInfo
from dividend_kernel.logging_config import get_logger
from dividend_kernel.models.payment import Withdrawal
from dividend_kernel.services.base import LedgerBoundService
from dividend_kernel.services.holder_service import HolderService

logger = get_logger("services.withdrawal")


class PayoutGateway(ABC):
    """Host-provided primitive that sends value to an address."""

    @abstractmethod
    def send(self, destination: str, amount: int) -> None:
        """Send ``amount`` to ``destination`` or raise."""
        ...


class WithdrawalService(LedgerBoundService):
    """Pull-style payout of settled rewards."""

    def __init__(
        self,
        session: Session,
        ledger_id: UUID,
        clock: Clock | None = None,
        payout_gateway: PayoutGateway | None = None,
    ):
        super().__init__(session, ledger_id, clock)
        self._holders = HolderService(session, ledger_id, self._clock)
        self._gateway = payout_gateway

    def withdraw_to(self, actor: str, destination: str) -> WithdrawalInfo:
        """Pay everything owed to ``actor`` to ``destination``."""
        self._get_ledger(for_update=True)
        holder = self._holders.find_holder(actor)

        amount = 0
        if holder is not None:
            amount = holder.unpaid_amount
            holder.unpaid_amount = 0

        now = self._clock.now()
        withdrawal = Withdrawal(
            ledger_id=self.ledger_id,
            holder=actor,
            destination=destination,
            amount=amount,
            paid_at=now,
        )
        self.session.add(withdrawal)
        self.session.flush()

        if self._gateway is not None and amount > 0:
            self._gateway.send(destination, amount)

        logger.info(
            "withdrawal_paid",
            extra={"holder": actor, "destination": destination, "amount": amount},
        )
        return WithdrawalInfo(
            id=withdrawal.id,
            holder=actor,
            destination=destination,
            amount=amount,
            paid_at=now,
        )
