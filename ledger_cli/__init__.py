"""Ledger export conversion tools."""

__version__ = "0.1.0"
