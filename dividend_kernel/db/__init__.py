"""Database layer - engine, base classes, types, and immutability."""

from dividend_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from dividend_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from dividend_kernel.db.types import Amount, Cursor, Identity, PeriodIndex, ZeroAmount

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "Amount",
    "Cursor",
    "Identity",
    "PeriodIndex",
    "ZeroAmount",
]
