"""Selectors for the dividend kernel (read side)."""

from dividend_kernel.selectors.ledger_selector import LedgerSelector

__all__ = ["LedgerSelector"]
