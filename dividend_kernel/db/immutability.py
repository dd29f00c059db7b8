"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Settlement is a one-way transition.  Once a period log or holder log is
settled, its snapshot and payout figures are the basis of every later
settlement in the chain; changing them would silently break pool
conservation for all following periods.  The services never write settled
rows; these listeners make that a hard guarantee for any code path that
goes through the ORM.

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_delete event] --> _check_*_delete() -----------------+
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity          | When Immutable                   | What
----------------|----------------------------------|-------------------------------
PeriodLog       | After settled = True             | Every ledger field; never deleted
HolderLog       | After settled = True             | Every ledger field; never deleted
Ledger          | ALWAYS (from creation)           | admin, period_seconds, created_at
Deposit         | ALWAYS (from creation)           | Append-only receipt
Withdrawal      | ALWAYS (from creation)           | Append-only payout record

===============================================================================
DESIGN DECISIONS
===============================================================================

1. updated_at may change on any row; it is audit metadata.

2. The transition settled False -> True is allowed together with the
   fields the settlement writes in the same flush.  We detect "was settled
   before this flush" through SQLAlchemy's attribute history.

3. Inline imports avoid circular imports between db/ and models/.

===============================================================================
USAGE
===============================================================================

    from dividend_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from dividend_kernel.exceptions import ImmutabilityViolationError
from dividend_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at"})


def _block(entity_type: str, target, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _was_settled_before(target) -> bool:
    history = get_history(target, "settled")
    if history.deleted:
        return bool(history.deleted[0])
    if history.added:
        return False
    return bool(target.settled)


def _changed_fields(target, allowed: frozenset[str] = _AUDIT_FIELDS) -> list[str]:
    return [
        attr.key
        for attr in inspect(target).attrs
        if attr.key not in allowed and attr.history.has_changes()
    ]


# =============================================================================
# Settled logs
# =============================================================================


def _check_settled_log_immutability(mapper, connection, target):
    """Reject any change to a period or holder log that was already settled."""
    if not _was_settled_before(target):
        return
    changed = _changed_fields(target)
    if changed:
        entity_type = type(target).__name__
        _block(
            entity_type,
            target,
            "UPDATE",
            f"Cannot modify field '{changed[0]}' on settled {entity_type} "
            f"{target.period_index}",
            field=changed[0],
        )


def _check_log_delete(mapper, connection, target):
    """Logs are never deleted, settled or not."""
    entity_type = type(target).__name__
    _block(entity_type, target, "DELETE", f"{entity_type} rows are never deleted")


# =============================================================================
# Ledger header
# =============================================================================

_LEDGER_FROZEN_FIELDS = ("admin", "period_seconds", "created_at")


def _check_ledger_immutability(mapper, connection, target):
    """admin, period_seconds and created_at are fixed at creation."""
    for field in _LEDGER_FROZEN_FIELDS:
        if get_history(target, field).has_changes():
            _block(
                "Ledger",
                target,
                "UPDATE",
                f"Cannot modify field '{field}' after creation",
                field=field,
            )


def _check_ledger_delete(mapper, connection, target):
    _block("Ledger", target, "DELETE", "Ledgers are never deleted")


# =============================================================================
# Append-only payment records
# =============================================================================


def _check_payment_immutability(mapper, connection, target):
    changed = _changed_fields(target)
    if changed:
        _block(
            type(target).__name__,
            target,
            "UPDATE",
            "Payment records are append-only",
            field=changed[0],
        )


def _check_payment_delete(mapper, connection, target):
    _block(type(target).__name__, target, "DELETE", "Payment records are append-only")


def _listener_table():
    from dividend_kernel.models.holder import HolderLog
    from dividend_kernel.models.ledger import Ledger
    from dividend_kernel.models.payment import Deposit, Withdrawal
    from dividend_kernel.models.period_log import PeriodLog

    return (
        (PeriodLog, "before_update", _check_settled_log_immutability),
        (PeriodLog, "before_delete", _check_log_delete),
        (HolderLog, "before_update", _check_settled_log_immutability),
        (HolderLog, "before_delete", _check_log_delete),
        (Ledger, "before_update", _check_ledger_immutability),
        (Ledger, "before_delete", _check_ledger_delete),
        (Deposit, "before_update", _check_payment_immutability),
        (Deposit, "before_delete", _check_payment_delete),
        (Withdrawal, "before_update", _check_payment_immutability),
        (Withdrawal, "before_delete", _check_payment_delete),
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners (idempotent).

    Call this after all models are imported but before any database
    operations begin.
    """
    for target, event_name, listener_fn in _listener_table():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    for target, event_name, listener_fn in _listener_table():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
