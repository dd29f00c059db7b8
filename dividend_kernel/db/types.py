"""
Module: dividend_kernel.db.types
Responsibility: Column types and annotated aliases shared by every model.
Architecture position: Kernel > DB.  MUST NOT import from models/, domain/,
    services/, or selectors/.

Invariants enforced:
    CRITICAL: No floats anywhere in the dividend kernel.  Share counts and
    monetary amounts are Python ints of unbounded size (a deposit may be any
    number of base units), persisted without loss of precision.

Failure modes:
    - ValueError on bind of a non-integral value (a float or a fractional
      Decimal) -- fractional shares and amounts do not exist.
"""

from decimal import Decimal
from typing import Annotated

from sqlalchemy import BigInteger, Integer, Numeric, String
from sqlalchemy.orm import mapped_column
from sqlalchemy.types import TypeDecorator

# 78 digits is enough for any unsigned 256-bit quantity.
AMOUNT_DIGITS = 78


class Amount(TypeDecorator):
    """
    Exact non-fractional integer of arbitrary size.

    Stored as NUMERIC(78, 0) on server databases.  SQLite coerces large
    NUMERIC values to REAL, so on SQLite the decimal text is stored instead.
    """

    impl = Numeric(AMOUNT_DIGITS, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(AMOUNT_DIGITS + 1))
        return dialect.type_descriptor(Numeric(AMOUNT_DIGITS, 0))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
            raise ValueError(f"Amount must be an integer, got {value!r}")
        if isinstance(value, Decimal) and value != value.to_integral_value():
            raise ValueError(f"Amount must be integral, got {value!r}")
        if dialect.name == "sqlite":
            return str(int(value))
        return Decimal(int(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


# Period index (small, ordered, indexable)
PeriodIndex = Annotated[int, mapped_column(Integer, nullable=False)]

# Settlement cursor: highest settled period index, -1 for none
Cursor = Annotated[int, mapped_column(BigInteger, nullable=False, default=-1)]

# Non-negative amount or share count, zero until first written
ZeroAmount = Annotated[int, mapped_column(Amount(), nullable=False, default=0)]

# Holder / admin / destination identity (opaque string, e.g. an address)
Identity = Annotated[str, mapped_column(String(128), nullable=False)]
