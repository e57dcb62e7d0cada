"""Conversion pipeline: parse, classify, regroup, rewrite."""

from __future__ import annotations

from pathlib import Path

from ledger_cli.shared.config import ConversionSettings
from ledger_cli.shared.exceptions import ConversionError
from ledger_cli.shared.logging import Logger

from .assembler import assemble
from .classifier import classify_entries
from .rules import apply_exclusions, compile_rules
from .transformer import collect_rows, collect_warnings, transform_groups
from .types import ConversionResult


def convert_text(text: str, settings: ConversionSettings | None = None) -> ConversionResult:
    """Convert one already-decoded export.

    Structural problems end up in ``errors`` and unsafe rewrites in ``warnings``; the
    function itself does not raise on malformed input.
    """
    settings = settings or ConversionSettings()
    parsed = assemble(text or "", normalize_prefixes=settings.normalize_alternate_prefixes)
    outcomes = transform_groups(
        classify_entries(parsed.entries), tolerance=settings.balance_tolerance
    )
    rows, excluded = apply_exclusions(collect_rows(outcomes), compile_rules(settings.exclusions))
    return ConversionResult(
        rows=rows,
        warnings=collect_warnings(outcomes),
        errors=list(parsed.errors),
        header=parsed.header,
        trailer=parsed.trailer,
        outcomes=outcomes,
        excluded=excluded,
        total_lines=parsed.total_lines,
        total_entries=len(parsed.entries),
    )


def decode_bytes(payload: bytes, encoding: str) -> str:
    try:
        return payload.decode(encoding)
    except (LookupError, UnicodeDecodeError) as exc:
        raise ConversionError(f"Could not decode input as {encoding}: {exc}") from exc


class ConversionPipeline:
    """Runs :func:`convert_text` with progress logging and file decoding."""

    def __init__(self, logger: Logger, settings: ConversionSettings | None = None) -> None:
        self.logger = logger
        self.settings = settings or ConversionSettings()

    def read_file(self, path: str | Path) -> str:
        source = Path(path).expanduser()
        try:
            payload = source.read_bytes()
        except OSError as exc:
            raise ConversionError(f"Could not read {source}: {exc}") from exc
        self.logger.debug(f"Read {len(payload)} byte(s) from {source}")
        return decode_bytes(payload, self.settings.encoding)

    def convert_file(self, path: str | Path) -> ConversionResult:
        self.logger.info(f"Reading ledger export from {path}…")
        return self.convert(self.read_file(path))

    def convert(self, text: str) -> ConversionResult:
        result = convert_text(text, self.settings)
        self.logger.info(
            f"Parsed {result.total_entries} entr{'y' if result.total_entries == 1 else 'ies'} "
            f"from {result.total_lines} line(s)"
        )
        self.logger.debug(
            f"Rewrote {result.normalized_groups} of {len(result.outcomes)} group(s); "
            f"{len(result.rows)} row(s) out"
        )
        if result.excluded:
            self.logger.info(f"Excluded {len(result.excluded)} row(s) by configured rules")
        return result
