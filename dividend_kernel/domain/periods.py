"""
PeriodResolver -- maps wall-clock time to a period index.

Responsibility:
    Pure arithmetic over a ledger's ``created_at`` and ``period_seconds``:
    period ``i`` covers ``[created_at + i * P, created_at + (i + 1) * P)``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Time is read only
    through an injected Clock.

Invariants enforced:
    - Monotonic: ``index_at(t1) <= index_at(t2)`` whenever ``t1 <= t2``.
      Timestamps earlier than "now" are NOT collapsed to period 0.

Failure modes:
    - TimestampBeforeCreationError for ``t < created_at``.
    - InvalidConfigError if ``period_seconds`` is not a positive integer.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from dividend_kernel.domain.clock import Clock
from dividend_kernel.exceptions import (
    InvalidConfigError,
    TimestampBeforeCreationError,
)


def as_utc(moment: datetime) -> datetime:
    """Normalize to an aware UTC datetime; naive values are taken as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def validate_period_seconds(period_seconds: int) -> int:
    """Return ``period_seconds`` if it is a positive int, else raise."""
    if isinstance(period_seconds, bool) or not isinstance(period_seconds, int):
        raise InvalidConfigError(
            "period_seconds", period_seconds, "must be an integer"
        )
    if period_seconds <= 0:
        raise InvalidConfigError(
            "period_seconds", period_seconds, "must be greater than zero"
        )
    return period_seconds


@dataclass(frozen=True)
class PeriodResolver:
    """
    Resolves timestamps to period indices for one ledger.

    Guarantees:
        - ``index_at()`` is pure and callable at any time.
        - Fractional seconds are truncated toward the past, so a period
          boundary belongs to the period it opens.
    """

    created_at: datetime
    period_seconds: int

    def __post_init__(self) -> None:
        validate_period_seconds(self.period_seconds)
        object.__setattr__(self, "created_at", as_utc(self.created_at))

    def index_at(self, moment: datetime) -> int:
        moment = as_utc(moment)
        if moment < self.created_at:
            raise TimestampBeforeCreationError(
                moment.isoformat(), self.created_at.isoformat()
            )
        elapsed = moment - self.created_at
        whole_seconds = elapsed.days * 86400 + elapsed.seconds
        return whole_seconds // self.period_seconds

    def current_index(self, clock: Clock) -> int:
        return self.index_at(clock.now())

    def period_start(self, index: int) -> datetime:
        """First instant of period ``index``."""
        return self.created_at + timedelta(seconds=index * self.period_seconds)

    def has_elapsed(self, index: int, clock: Clock) -> bool:
        """True once the whole of period ``index`` lies in the past."""
        return index < self.current_index(clock)
