"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service in the kernel layer.  All concrete services receive a
    SQLAlchemy ``Session`` that they use via ``session.flush()`` -- never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or rollback themselves.  The caller (session_scope(),
    the CLI, or a test) owns commit/rollback, which is what makes every
    public ledger operation all-or-nothing.

Failure modes:
    - LedgerNotFoundError if a ledger-bound service is pointed at an
      unknown ledger id.
"""

from abc import ABC
from uuid import UUID

from sqlalchemy.orm import Session

from dividend_kernel.domain.clock import Clock, SystemClock
from dividend_kernel.domain.periods import PeriodResolver
from dividend_kernel.exceptions import LedgerNotFoundError
from dividend_kernel.models.ledger import Ledger


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session):
        self.session = session


class LedgerBoundService(BaseService):
    """
    Service operating on exactly one ledger, identified by ``ledger_id``.

    The ledger handle is explicit: there is no ambient "current ledger".
    Time is read only through the injected clock.
    """

    def __init__(self, session: Session, ledger_id: UUID, clock: Clock | None = None):
        super().__init__(session)
        self.ledger_id = ledger_id
        self._clock = clock or SystemClock()

    @property
    def clock(self) -> Clock:
        return self._clock

    def _get_ledger(self, for_update: bool = False) -> Ledger:
        """
        Load the ledger row.

        ``for_update`` takes a row lock on databases that support it, which
        linearizes concurrent writers on the same ledger.
        """
        ledger = self.session.get(
            Ledger,
            self.ledger_id,
            with_for_update=True if for_update else None,
        )
        if ledger is None:
            raise LedgerNotFoundError(str(self.ledger_id))
        return ledger

    def _resolver(self) -> PeriodResolver:
        ledger = self._get_ledger()
        return PeriodResolver(ledger.created_at, ledger.period_seconds)

    def current_index(self) -> int:
        return self._resolver().current_index(self._clock)
