"""
Module: dividend_kernel.models.period_log
Responsibility: ORM persistence for the global per-period accounting log.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - One row per (ledger_id, period_index) (uq_period_log_index).
    - Rows are sparse: a log exists only once something was written at its
      index (deposit, mint, carry-forward, settlement).  Reads of missing
      indices are zero-valued.
    - Once settled, total_shares_snapshot = previous snapshot + shares_delta
      and per_share_amount * snapshot + carried remainder = pool.
    - Settled rows are immutable (db/immutability.py).
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from dividend_kernel.db.base import TrackedBase, UUIDString
from dividend_kernel.db.types import PeriodIndex, ZeroAmount


class PeriodLog(TrackedBase):
    """Receipts and share issuance attributed to one period of one ledger."""

    __tablename__ = "period_logs"

    __table_args__ = (
        UniqueConstraint("ledger_id", "period_index", name="uq_period_log_index"),
        Index("idx_period_log_settled", "ledger_id", "settled"),
    )

    ledger_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("ledgers.id"),
        nullable=False,
    )

    period_index: Mapped[PeriodIndex]

    # Sum of deposits attributed to this period
    received_amount: Mapped[ZeroAmount]

    # Remainder inherited from settlement of the previous period
    carried_amount: Mapped[ZeroAmount]

    # Shares minted during this period (transfers never touch it)
    shares_delta: Mapped[ZeroAmount]

    settled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    total_shares_snapshot: Mapped[ZeroAmount]

    per_share_amount: Mapped[ZeroAmount]

    settled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        state = "settled" if self.settled else "open"
        return f"<PeriodLog {self.period_index}: {state}>"

    @property
    def pool(self) -> int:
        return self.received_amount + self.carried_amount

    @classmethod
    def empty(cls, ledger_id: UUID, period_index: int) -> "PeriodLog":
        """Zero-valued log, materialized on first write at an index."""
        return cls(
            ledger_id=ledger_id,
            period_index=period_index,
            received_amount=0,
            carried_amount=0,
            shares_delta=0,
            settled=False,
            total_shares_snapshot=0,
            per_share_amount=0,
        )
