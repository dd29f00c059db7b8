"""
Dividend Kernel

A periodic dividend-distribution ledger with:
- Fixed-length periods resolved from an injected clock
- Lazily materialized, strictly ordered period and holder logs
- Exact integer settlement with remainder carry-forward
- Atomic, flush-only services behind one transactional scope
"""

__version__ = "0.1.0"
