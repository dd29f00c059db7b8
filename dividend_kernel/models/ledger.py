"""
Module: dividend_kernel.models.ledger
Responsibility: ORM persistence for the ledger header -- admin identity,
    period length, creation time, outstanding shares, and the settlement
    cursor of the global period chain.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - period_seconds > 0 (CHECK constraint; validated earlier by the
      service with InvalidConfigError).
    - total_shares == sum(HolderAccount.current_shares) for this ledger
      (SHARE_CONSERVATION, maintained by HolderService).
    - settled_through is the highest settled period index (-1 for none).
      Period logs 0..settled_through are settled; none above it is.

Failure modes:
    - ImmutabilityViolationError on any change to admin, period_seconds,
      or created_at after insert (db/immutability.py).
"""

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from dividend_kernel.db.base import Base
from dividend_kernel.db.types import Cursor, Identity, ZeroAmount


class Ledger(Base):
    """
    Singleton-per-handle dividend ledger.

    ``created_at`` is the ledger's epoch for period resolution and comes
    from the injected clock, not from the database server.
    """

    __tablename__ = "ledgers"

    __table_args__ = (
        CheckConstraint("period_seconds > 0", name="ck_ledger_period_positive"),
    )

    admin: Mapped[Identity]

    period_seconds: Mapped[int] = mapped_column(BigInteger, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    total_shares: Mapped[ZeroAmount]

    settled_through: Mapped[Cursor]

    def __repr__(self) -> str:
        return (
            f"<Ledger {self.id}: shares={self.total_shares} "
            f"settled_through={self.settled_through}>"
        )
