"""
Ledger settings schema.

Defines the human-authored deployment settings for a dividend ledger
host (CLI or application): where the database lives, the period length
and admin used when a new ledger is created, and optionally which
existing ledger to operate on.

YAML files are parsed into ``LedgerSettings`` by the loader.  The kernel
never imports this package; hosts read settings and pass plain values
into the kernel services.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LedgerSettings:
    """Deployment settings for one ledger host."""

    database_url: str
    period_seconds: int
    admin: str
    log_level: str = "INFO"
    ledger_id: UUID | None = None  # None until a ledger has been created
