"""Operational scripts for the dividend ledger."""
