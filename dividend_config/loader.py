"""
Settings Loader (``dividend_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into a frozen
``dividend_config.schema.LedgerSettings``.  Hosts should go through
``dividend_config.get_active_settings()``; this module is the parsing
layer underneath it.

Invariants enforced
-------------------
* Required keys (``database_url``, ``period_seconds``, ``admin``) have no
  silent defaults: a missing key raises ``KeyError``.
* ``period_seconds`` is a positive integer and ``log_level`` a standard
  logging level name, else ``ValueError``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid values  -> ``ValueError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from uuid import UUID

import yaml

from dividend_config.schema import LOG_LEVELS, LedgerSettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping, got {type(data).__name__}")
    return data


def parse_period_seconds(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"period_seconds must be a positive integer, got {value!r}")
    return value


def parse_log_level(value: Any) -> str:
    level = str(value).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {value!r}")
    return level


def parse_settings(data: dict[str, Any]) -> LedgerSettings:
    """
    Parse ``LedgerSettings`` from a dict.

    Raises:
        KeyError: if a required key is missing.
        ValueError: if a value is invalid.
    """
    admin = str(data["admin"]).strip()
    if not admin:
        raise ValueError("admin must be non-empty")

    ledger_id = data.get("ledger_id")
    return LedgerSettings(
        database_url=str(data["database_url"]),
        period_seconds=parse_period_seconds(data["period_seconds"]),
        admin=admin,
        log_level=parse_log_level(data.get("log_level", "INFO")),
        ledger_id=UUID(str(ledger_id)) if ledger_id else None,
    )


def load_settings(path: Path) -> LedgerSettings:
    """Load and parse a settings file."""
    return parse_settings(load_yaml_file(Path(path)))
