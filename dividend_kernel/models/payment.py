"""
Module: dividend_kernel.models.payment
Responsibility: Append-only records of value entering (Deposit) and leaving
    (Withdrawal) a ledger.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Both tables are append-only; updates and deletes are rejected by
      db/immutability.py.
    - sum(Deposit.amount) == rewards credited + carry outstanding
      (POOL_CONSERVATION); sum(Withdrawal.amount) never exceeds the rewards
      credited.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from dividend_kernel.db.base import TrackedBase, UUIDString
from dividend_kernel.db.types import Identity, PeriodIndex, ZeroAmount


class Deposit(TrackedBase):
    """An accepted incoming payment, attributed to the then-current period."""

    __tablename__ = "deposits"

    __table_args__ = (
        Index("idx_deposit_period", "ledger_id", "period_index"),
    )

    ledger_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("ledgers.id"),
        nullable=False,
    )

    depositor: Mapped[Identity]

    amount: Mapped[ZeroAmount]

    period_index: Mapped[PeriodIndex]

    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Deposit {self.amount} from {self.depositor} in {self.period_index}>"


class Withdrawal(TrackedBase):
    """A payout of a holder's unpaid amount to a destination."""

    __tablename__ = "withdrawals"

    __table_args__ = (
        Index("idx_withdrawal_holder", "ledger_id", "holder"),
    )

    ledger_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("ledgers.id"),
        nullable=False,
    )

    holder: Mapped[Identity]

    destination: Mapped[Identity]

    amount: Mapped[ZeroAmount]

    paid_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Withdrawal {self.amount} {self.holder} -> {self.destination}>"
