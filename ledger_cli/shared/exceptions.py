"""Project-wide custom exceptions."""

from __future__ import annotations


class LedgerCliError(Exception):
    """Base exception for the ledger conversion suite."""


class ConfigurationError(LedgerCliError):
    """Raised when configuration loading or validation fails."""


class ConversionError(LedgerCliError):
    """Raised when an input file cannot be read or decoded."""


class RecordError(ConversionError):
    """Raised for a malformed fixed-width record.

    The parser catches these per line and turns them into structural errors, so they
    never escape the conversion engine.
    """

    def __init__(self, line_no: int | None, message: str) -> None:
        self.line_no = line_no
        self.detail = message
        prefix = "EOF" if line_no is None else f"L{line_no}"
        super().__init__(f"{prefix}: {message}")


class ExportError(LedgerCliError):
    """Raised when rendering or writing converted output fails."""
