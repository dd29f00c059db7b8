"""
Module: dividend_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.  Selectors
    form the "Q" side of the CQRS-lite split, providing structured read access
    to ledger data without mutation capability.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: Selectors MUST NOT call session.add(), session.delete(),
      session.commit(), or session.flush().  In particular a read of a period
      or holder log that was never written does NOT create a row.
    - DTO return convention: Selectors return frozen dataclasses, NOT ORM
      model instances.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs or computed results.  They MUST NOT mutate any data.
    """

    def __init__(self, session: Session):
        self.session = session
