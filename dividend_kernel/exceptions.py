"""
Typed Exception Hierarchy for the Dividend Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every rejection in the ledger is a precondition failure with a precise
meaning: a settlement attempted too early, out of order, or twice; a mint by
someone who is not the admin; a transfer larger than a balance.  Callers
(CLI, host environment, tests) branch on these by TYPE and by ``code``, never
by parsing messages.

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        ledger.settle_period(3)
    except OutOfOrderError as e:
        ledger.settle_period(e.required_index)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    DividendLedgerError (base)
    |
    +-- ConfigurationError
    |   +-- InvalidConfigError
    |
    +-- AuthorizationError
    |   +-- UnauthorizedError
    |
    +-- AmountError
    |   +-- InvalidAmountError
    |   +-- InsufficientSharesError
    |
    +-- SettlementError
    |   +-- NotYetElapsedError
    |   +-- OutOfOrderError
    |   +-- AlreadySettledError
    |
    +-- PeriodError
    |   +-- InvalidPeriodIndexError
    |   +-- TimestampBeforeCreationError
    |
    +-- LedgerNotFoundError
    +-- ImmutabilityViolationError
    +-- SettlementInvariantError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Configuration   | INVALID_CONFIG              | period_seconds <= 0, blank admin
----------------|-----------------------------|-----------------------------------------
Authorization   | UNAUTHORIZED                | Mint by a non-admin caller
----------------|-----------------------------|-----------------------------------------
Amount          | INVALID_AMOUNT              | Zero or negative mint/deposit/transfer
                | INSUFFICIENT_SHARES         | Transfer exceeds sender balance
----------------|-----------------------------|-----------------------------------------
Settlement      | NOT_YET_ELAPSED             | Period not over / global log unsettled
                | OUT_OF_ORDER                | Predecessor log unsettled
                | ALREADY_SETTLED             | Duplicate settlement
----------------|-----------------------------|-----------------------------------------
Period          | INVALID_PERIOD_INDEX        | Negative period index
                | TIMESTAMP_BEFORE_CREATION   | Resolving a time before the ledger
----------------|-----------------------------|-----------------------------------------
Ledger          | LEDGER_NOT_FOUND            | Unknown ledger id
Immutability    | IMMUTABILITY_VIOLATION      | Writing a settled log
Invariant       | SETTLEMENT_INVARIANT        | Arithmetic invariant broken (bug)

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Settlement ordering failures are recoverable: the caller re-issues the
   call once the predecessor is settled.  ``OutOfOrderError.required_index``
   names the index that must be settled first.

2. ``SettlementInvariantError`` is never expected in normal operation.  It
   signals that persisted data violates an arithmetic invariant (for
   example a negative holder snapshot) and should halt processing.

===============================================================================
"""


class DividendLedgerError(Exception):
    """
    Base exception for all dividend kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "DIVIDEND_LEDGER_ERROR"


# Configuration


class ConfigurationError(DividendLedgerError):
    """Base exception for construction-time configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class InvalidConfigError(ConfigurationError):
    """Ledger construction parameters are invalid."""

    code: str = "INVALID_CONFIG"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")


# Authorization


class AuthorizationError(DividendLedgerError):
    """Base exception for caller-role failures."""

    code: str = "AUTHORIZATION_ERROR"


class UnauthorizedError(AuthorizationError):
    """Caller lacks the role required by the operation."""

    code: str = "UNAUTHORIZED"

    def __init__(self, actor: str, operation: str, required_role: str):
        self.actor = actor
        self.operation = operation
        self.required_role = required_role
        super().__init__(
            f"{actor} may not {operation}: requires {required_role}"
        )


# Amounts


class AmountError(DividendLedgerError):
    """Base exception for quantity errors."""

    code: str = "AMOUNT_ERROR"


class InvalidAmountError(AmountError):
    """Zero, negative, or otherwise disallowed quantity."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, operation: str, amount: object):
        self.operation = operation
        self.amount = amount
        super().__init__(f"Invalid amount for {operation}: {amount!r}")


class InsufficientSharesError(AmountError):
    """Transfer exceeds the sender's current share balance."""

    code: str = "INSUFFICIENT_SHARES"

    def __init__(self, holder: str, requested: int, available: int):
        self.holder = holder
        self.requested = requested
        self.available = available
        super().__init__(
            f"{holder} cannot transfer {requested} shares: holds {available}"
        )


# Settlement


class SettlementError(DividendLedgerError):
    """Base exception for settlement precondition failures."""

    code: str = "SETTLEMENT_ERROR"


class NotYetElapsedError(SettlementError):
    """
    Settlement attempted before it is allowed.

    For period logs: the period has not fully elapsed.
    For holder logs: the period's global log is not settled yet.
    """

    code: str = "NOT_YET_ELAPSED"

    def __init__(self, period_index: int, current_index: int | None = None, holder: str | None = None):
        self.period_index = period_index
        self.current_index = current_index
        self.holder = holder
        if holder is None:
            message = (
                f"Period {period_index} has not elapsed "
                f"(current period is {current_index})"
            )
        else:
            message = (
                f"Cannot settle {holder} at period {period_index}: "
                f"period log is not settled"
            )
        super().__init__(message)


class OutOfOrderError(SettlementError):
    """Settlement attempted while the preceding log is still unsettled."""

    code: str = "OUT_OF_ORDER"

    def __init__(self, period_index: int, required_index: int, holder: str | None = None):
        self.period_index = period_index
        self.required_index = required_index
        self.holder = holder
        owner = "period log" if holder is None else f"holder log of {holder}"
        super().__init__(
            f"Cannot settle {owner} {period_index} before {required_index}"
        )


class AlreadySettledError(SettlementError):
    """Duplicate settlement attempt."""

    code: str = "ALREADY_SETTLED"

    def __init__(self, period_index: int, holder: str | None = None):
        self.period_index = period_index
        self.holder = holder
        owner = "Period log" if holder is None else f"Holder log of {holder}"
        super().__init__(f"{owner} {period_index} is already settled")


# Periods


class PeriodError(DividendLedgerError):
    """Base exception for period resolution errors."""

    code: str = "PERIOD_ERROR"


class InvalidPeriodIndexError(PeriodError):
    """Period indices start at zero."""

    code: str = "INVALID_PERIOD_INDEX"

    def __init__(self, period_index: int):
        self.period_index = period_index
        super().__init__(f"Invalid period index: {period_index}")


class TimestampBeforeCreationError(PeriodError):
    """No period exists before the ledger was created."""

    code: str = "TIMESTAMP_BEFORE_CREATION"

    def __init__(self, timestamp: str, created_at: str):
        self.timestamp = timestamp
        self.created_at = created_at
        super().__init__(
            f"Timestamp {timestamp} precedes ledger creation at {created_at}"
        )


# Lookup / integrity


class LedgerNotFoundError(DividendLedgerError):
    """Ledger with given ID was not found."""

    code: str = "LEDGER_NOT_FOUND"

    def __init__(self, ledger_id: str):
        self.ledger_id = ledger_id
        super().__init__(f"Ledger not found: {ledger_id}")


class ImmutabilityViolationError(DividendLedgerError):
    """Attempted to modify or delete a settled or append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


class SettlementInvariantError(DividendLedgerError):
    """Persisted state violates a settlement arithmetic invariant."""

    code: str = "SETTLEMENT_INVARIANT"

    def __init__(self, invariant: str, detail: str):
        self.invariant = invariant
        self.detail = detail
        super().__init__(f"Invariant {invariant} violated: {detail}")
