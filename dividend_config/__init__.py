"""
Dividend ledger configuration (``dividend_config``).

Single entry point for hosts::

    from dividend_config import get_active_settings

    settings = get_active_settings()
    init_engine_from_url(settings.database_url)

The settings file is chosen, in order, from the ``path`` argument, the
``DIVIDEND_LEDGER_CONFIG`` environment variable, and the bundled
``sets/default.yaml``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dividend_config.loader import load_settings
from dividend_config.schema import LedgerSettings

CONFIG_ENV_VAR = "DIVIDEND_LEDGER_CONFIG"

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"
_logger = logging.getLogger("dividend_kernel.config")


def resolve_settings_path(path: Path | str | None = None) -> Path:
    if path is not None:
        return Path(path)
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)
    return _DEFAULT_CONFIG_PATH


def get_active_settings(path: Path | str | None = None) -> LedgerSettings:
    """
    Load the active ledger settings.

    Raises:
        FileNotFoundError: If the settings file does not exist.
        KeyError: If a required key is missing.
        ValueError: If a value is invalid.
    """
    settings_path = resolve_settings_path(path)
    settings = load_settings(settings_path)
    _logger.info(
        "config_loaded",
        extra={
            "path": str(settings_path),
            "period_seconds": settings.period_seconds,
            "ledger_id": str(settings.ledger_id) if settings.ledger_id else None,
        },
    )
    return settings


__all__ = [
    "CONFIG_ENV_VAR",
    "LedgerSettings",
    "get_active_settings",
    "load_settings",
    "resolve_settings_path",
]
