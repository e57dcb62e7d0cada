"""ledger-convert CLI entrypoint."""

from __future__ import annotations

from pathlib import Path

import click

from ledger_cli.shared.cli import CLIContext, common_cli_options, handle_cli_errors
from ledger_cli.shared.config import EXPORT_FORMATS
from ledger_cli.shared.exceptions import ExportError

from .engine import ConversionPipeline
from .render import render_preview
from .serializer import render_json
from .types import ConversionResult


@click.command(help="Convert a fixed-width ledger export into normalized double-entry rows.")
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=str))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(EXPORT_FORMATS),
    help="Output format (defaults to the configured export format, normally 'table').",
)
@click.option("--output", type=click.Path(path_type=str), help="Output file path (default stdout).")
@click.option("--company-code", type=str, help="Company code appended to every table row.")
@click.option("--encoding", type=str, help="Single-byte encoding of the input file (default latin-1).")
@click.option("--strict", is_flag=True, help="Exit non-zero when structural errors are found.")
@common_cli_options
@handle_cli_errors
def cli(
    input_path: str,
    output_format: str | None,
    output: str | None,
    company_code: str | None,
    encoding: str | None,
    strict: bool,
    cli_ctx: CLIContext,
) -> None:
    """Convert one ledger export."""

    config = cli_ctx.config
    if encoding:
        config = config.with_encoding(encoding)
    if company_code is not None:
        config = config.with_company_code(company_code)
    logger = cli_ctx.logger

    format_choice = output_format or config.export.default_format
    output_path = Path(output).expanduser() if output else None
    if format_choice == "preview" and output_path is not None:
        raise click.ClickException("--format preview only writes to the terminal.")

    pipeline = ConversionPipeline(logger, config.conversion)
    result = pipeline.convert_file(input_path)

    limit = None if cli_ctx.verbose else config.export.issue_limit
    logger.issues("Structural errors", result.errors, limit=limit)
    logger.issues("Warnings", result.warnings, limit=limit)
    review_count = sum(1 for row in result.rows if row.requires_review)
    if review_count:
        logger.warning(f"{review_count} row(s) require review (short detail prefix).")

    if format_choice == "preview":
        render_preview(result.rows, title=Path(input_path).name)
    else:
        rendered = _render(
            result, format_choice, config.export.company_code, config.conversion.encoding
        )
        if output_path is None:
            click.echo(rendered, nl=False)
        elif cli_ctx.dry_run:
            logger.info(f"Dry run: would write {len(result.rows)} row(s) to {output_path}")
        else:
            encoding_out = "utf-8" if format_choice == "json" else config.conversion.encoding
            _write_output(rendered, output_path, encoding_out)
            logger.success(f"Wrote {len(result.rows)} row(s) ({format_choice}) → {output_path}")

    if strict and result.errors:
        raise click.ClickException(f"{len(result.errors)} structural error(s) found in {input_path}.")


def _render(
    result: ConversionResult, format_choice: str, company_code: str, encoding: str
) -> str:
    if format_choice == "json":
        return render_json(result)
    if format_choice == "lines":
        lines = result.lines
        return "\n".join(lines) + "\n" if lines else ""
    return result.table(company_code or None, encoding)


def _write_output(content: str, path: Path, encoding: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        path.write_text(content, encoding=encoding, newline="")
    except UnicodeEncodeError as exc:
        raise ExportError(f"Output cannot be encoded as {encoding}: {exc}") from exc


def main() -> None:
    """Entry point for console_scripts."""
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
