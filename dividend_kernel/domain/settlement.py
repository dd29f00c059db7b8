"""
Settlement arithmetic -- pure integer math for period and holder logs.

Responsibility:
    Computes what a settlement writes, given the values it reads.  The
    services load rows, call these functions, and persist the result.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    POOL_CONSERVATION -- ``per_share * snapshot + remainder == pool`` for
        every period settlement.  Truncation is intentional; the remainder
        is carried into the next period, never dropped.
    HOLDER_ORDER (arithmetic half) -- a holder snapshot is never negative.

Failure modes:
    - SettlementInvariantError if inputs are negative or a holder snapshot
      would go below zero.  Both indicate corrupted persisted state.
"""

from dataclasses import dataclass

from dividend_kernel.exceptions import SettlementInvariantError
from dividend_kernel.invariants import LedgerInvariant


@dataclass(frozen=True)
class PeriodSettlement:
    """Outcome of settling one period log."""

    total_shares_snapshot: int
    pool: int
    per_share_amount: int
    remainder: int

    @property
    def distributed(self) -> int:
        return self.per_share_amount * self.total_shares_snapshot


@dataclass(frozen=True)
class HolderSettlement:
    """Outcome of settling one holder log."""

    total_shares_snapshot: int
    rewarded_amount: int


def _require_non_negative(invariant: LedgerInvariant, **values: int) -> None:
    for name, value in values.items():
        if value < 0:
            raise SettlementInvariantError(
                invariant.value, f"{name} is negative ({value})"
            )


def settle_pool(
    previous_snapshot: int,
    shares_delta: int,
    received_amount: int,
    carried_amount: int,
) -> PeriodSettlement:
    """
    Divide a period's pool among its outstanding shares.

    Args:
        previous_snapshot: Snapshot of period ``i - 1`` (0 for period 0).
        shares_delta: Shares minted during period ``i``.
        received_amount: Deposits attributed to period ``i``.
        carried_amount: Remainder inherited from period ``i - 1``.

    Returns:
        PeriodSettlement.  With zero shares outstanding nothing is
        distributable and the whole pool is the remainder.
    """
    _require_non_negative(
        LedgerInvariant.POOL_CONSERVATION,
        previous_snapshot=previous_snapshot,
        shares_delta=shares_delta,
        received_amount=received_amount,
        carried_amount=carried_amount,
    )
    snapshot = previous_snapshot + shares_delta
    pool = received_amount + carried_amount
    if snapshot == 0:
        per_share, remainder = 0, pool
    else:
        per_share, remainder = divmod(pool, snapshot)
    return PeriodSettlement(
        total_shares_snapshot=snapshot,
        pool=pool,
        per_share_amount=per_share,
        remainder=remainder,
    )


def settle_holder(
    previous_snapshot: int,
    shares_increased: int,
    shares_decreased: int,
    per_share_amount: int,
) -> HolderSettlement:
    """
    Compute a holder's ending balance and reward for one period.

    The reward uses the balance at the END of the period; share movement
    inside the period is not prorated.
    """
    _require_non_negative(
        LedgerInvariant.HOLDER_ORDER,
        previous_snapshot=previous_snapshot,
        shares_increased=shares_increased,
        shares_decreased=shares_decreased,
        per_share_amount=per_share_amount,
    )
    snapshot = previous_snapshot + shares_increased - shares_decreased
    if snapshot < 0:
        raise SettlementInvariantError(
            LedgerInvariant.HOLDER_ORDER.value,
            f"holder snapshot would be {snapshot}",
        )
    return HolderSettlement(
        total_shares_snapshot=snapshot,
        rewarded_amount=per_share_amount * snapshot,
    )
