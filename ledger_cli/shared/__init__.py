"""Helpers shared across ledger-cli commands."""
