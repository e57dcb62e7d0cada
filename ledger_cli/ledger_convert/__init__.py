"""Public exports for the ledger-convert package."""

from .assembler import assemble
from .classifier import classify_entry, classify_role, extract_counterparty, extract_title
from .engine import ConversionPipeline, convert_text
from .serializer import format_amount, render_json, render_lines, render_table
from .transformer import GroupKey, Normalized, Unchanged, transform_groups
from .types import (
    ClassifiedEntry,
    ConversionResult,
    DetailRecord,
    HeaderRecord,
    LedgerEntry,
    LotRecord,
    OutputRow,
    ParseResult,
    Role,
)

__all__ = [
    "ClassifiedEntry",
    "ConversionPipeline",
    "ConversionResult",
    "DetailRecord",
    "GroupKey",
    "HeaderRecord",
    "LedgerEntry",
    "LotRecord",
    "Normalized",
    "OutputRow",
    "ParseResult",
    "Role",
    "Unchanged",
    "assemble",
    "classify_entry",
    "classify_role",
    "convert_text",
    "extract_counterparty",
    "extract_title",
    "format_amount",
    "render_json",
    "render_lines",
    "render_table",
    "transform_groups",
]
