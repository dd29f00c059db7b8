"""
Kernel Invariants Contract.

These invariants are structural law for the settlement engine.  No
configuration value may override them.

This module exists solely to declare these invariants explicitly.  The
enforcement is distributed across domain/settlement.py, the settlement and
holder services, and the ORM immutability listeners.
"""

from enum import Enum, unique


@unique
class LedgerInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    POOL_CONSERVATION = "pool_conservation"
    """Rewards credited plus the outstanding carry always equal the sum of
    deposits. Enforced by domain.settlement.settle_pool()."""

    REMAINDER_CARRY_FORWARD = "remainder_carry_forward"
    """The integer-division remainder of period i is added to the carried
    amount of period i + 1. Enforced by SettlementService.settle_period()."""

    SHARE_CONSERVATION = "share_conservation"
    """Ledger.total_shares equals the sum of holder balances; transfers never
    change shares_delta. Enforced by HolderService."""

    PERIOD_ORDER = "period_order"
    """Period log i settles only after period log i - 1 and only once period i
    has elapsed. Enforced by SettlementService via Ledger.settled_through."""

    HOLDER_ORDER = "holder_order"
    """Holder log i settles only after period log i and holder log i - 1.
    Enforced by SettlementService via HolderAccount.settled_through."""

    SETTLED_IMMUTABILITY = "settled_immutability"
    """Settled period and holder logs are never updated or deleted.
    Enforced by db.immutability listeners."""


# All invariants as a frozenset for programmatic checks.
ALL_LEDGER_INVARIANTS: frozenset[LedgerInvariant] = frozenset(LedgerInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "dividend_config",
    "scripts",
)
