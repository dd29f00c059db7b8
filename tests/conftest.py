"""
Pytest fixtures for the dividend kernel test suite.

Provides:
- Database sessions with per-test rollback isolation
- A deterministic clock and ready-made ledgers
- Structured log capture

Environment Variables:
- DATABASE_URL: SQLAlchemy URL of the test database.  If not set, an
  in-memory SQLite database is used, which needs no running server.
"""

import json
import logging
import os
from datetime import datetime, timezone
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

import dividend_kernel.models  # noqa: F401  (registers tables)
from dividend_kernel.db.base import Base
from dividend_kernel.db.engine import init_engine_from_url, reset_engine
from dividend_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from dividend_kernel.domain.clock import DeterministicClock
from dividend_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from dividend_kernel.services.ledger_service import LedgerService

DEFAULT_DATABASE_URL = "sqlite:///:memory:"

# One week, the conventional payout period
PERIOD_SECONDS = 7 * 24 * 3600

ADMIN = "0xadmin"
ALICE = "0xalice"
BOB = "0xbob"
CAROL = "0xcarol"
PAYER = "0xpayer"

LEDGER_EPOCH = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def get_database_url() -> str:
    """Get database URL from environment, or use in-memory SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture dividend_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.deposit(PAYER, 10)
            logs = captured_logs()
            assert any(r["message"] == "deposit_recorded" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("dividend_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Session-scoped DB infrastructure (create engine + tables ONCE per suite)
# =============================================================================


@pytest.fixture(scope="session")
def db_engine():
    """Single engine for the entire test session."""
    eng = init_engine_from_url(get_database_url(), echo=False)
    yield eng
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    """Create all tables once per session, drop once at end.

    Immutability listeners are registered once and remain active.
    """
    Base.metadata.drop_all(db_engine)
    Base.metadata.create_all(db_engine)
    register_immutability_listeners()
    yield
    unregister_immutability_listeners()


# =============================================================================
# Per-test session with automatic rollback
# =============================================================================


@pytest.fixture(scope="function")
def session(db_tables, db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    Opens a dedicated connection with an outer transaction and a session
    that joins it through a SAVEPOINT.  At teardown the outer transaction
    is rolled back, undoing ALL data changes made during the test.
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


# =============================================================================
# Clock and ledger fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Provide a deterministic clock starting at the ledger epoch."""
    return DeterministicClock(LEDGER_EPOCH)


@pytest.fixture
def make_ledger(session: Session, deterministic_clock: DeterministicClock):
    """Factory fixture creating ledgers on the shared deterministic clock."""

    def _create(period_seconds: int = PERIOD_SECONDS, admin: str = ADMIN, **kwargs) -> LedgerService:
        return LedgerService.create(
            session,
            admin=admin,
            period_seconds=period_seconds,
            clock=deterministic_clock,
            **kwargs,
        )

    return _create


@pytest.fixture
def ledger(make_ledger) -> LedgerService:
    """A fresh ledger with a one-week period and no shares."""
    return make_ledger()


@pytest.fixture
def advance_periods(deterministic_clock: DeterministicClock):
    """Advance the deterministic clock by whole periods."""

    def _advance(count: int = 1, period_seconds: int = PERIOD_SECONDS) -> None:
        deterministic_clock.advance(count * period_seconds)

    return _advance


@pytest.fixture
def funded_ledger(ledger: LedgerService) -> LedgerService:
    """Alice and Bob hold 5 shares each; 12 deposited in period 0."""
    ledger.mint(ADMIN, ALICE, 5)
    ledger.mint(ADMIN, BOB, 5)
    ledger.deposit(PAYER, 12)
    return ledger
