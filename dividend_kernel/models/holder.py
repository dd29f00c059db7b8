"""
Module: dividend_kernel.models.holder
Responsibility: ORM persistence for share holders and their per-period logs.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - One HolderAccount per (ledger_id, address) (uq_holder_address).
    - One HolderLog per (holder_id, period_index) (uq_holder_log_index).
    - current_shares is the live, authoritative balance.  HolderLog rows
      only accumulate the movement that feeds the next snapshot.
    - settled_through is the highest settled holder log index (-1 for none).
    - Settled HolderLog rows are immutable (db/immutability.py).
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from dividend_kernel.db.base import TrackedBase, UUIDString
from dividend_kernel.db.types import Cursor, Identity, PeriodIndex, ZeroAmount


class HolderAccount(TrackedBase):
    """Live share balance and unpaid rewards of one address."""

    __tablename__ = "holders"

    __table_args__ = (
        UniqueConstraint("ledger_id", "address", name="uq_holder_address"),
    )

    ledger_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("ledgers.id"),
        nullable=False,
    )

    address: Mapped[Identity]

    current_shares: Mapped[ZeroAmount]

    # Accumulated from settled holder logs, zeroed by withdrawal
    unpaid_amount: Mapped[ZeroAmount]

    settled_through: Mapped[Cursor]

    def __repr__(self) -> str:
        return f"<HolderAccount {self.address}: {self.current_shares} shares>"

    @classmethod
    def empty(cls, ledger_id: UUID, address: str) -> "HolderAccount":
        return cls(
            ledger_id=ledger_id,
            address=address,
            current_shares=0,
            unpaid_amount=0,
            settled_through=-1,
        )


class HolderLog(TrackedBase):
    """Share movement and resulting reward of one holder for one period."""

    __tablename__ = "holder_logs"

    __table_args__ = (
        UniqueConstraint("holder_id", "period_index", name="uq_holder_log_index"),
    )

    holder_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("holders.id"),
        nullable=False,
    )

    period_index: Mapped[PeriodIndex]

    shares_increased: Mapped[ZeroAmount]

    shares_decreased: Mapped[ZeroAmount]

    settled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    total_shares_snapshot: Mapped[ZeroAmount]

    rewarded_amount: Mapped[ZeroAmount]

    def __repr__(self) -> str:
        state = "settled" if self.settled else "open"
        return f"<HolderLog {self.period_index}: {state}>"

    @classmethod
    def empty(cls, holder_id: UUID, period_index: int) -> "HolderLog":
        return cls(
            holder_id=holder_id,
            period_index=period_index,
            shares_increased=0,
            shares_decreased=0,
            settled=False,
            total_shares_snapshot=0,
            rewarded_amount=0,
        )
