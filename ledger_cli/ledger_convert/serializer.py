"""Render converted rows as display lines, a semicolon table, or JSON."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterator, Sequence
from decimal import Decimal
from typing import Any

from .types import ConversionResult, HeaderRecord, OutputRow

DEFAULT_ENCODING = "latin-1"
TABLE_HEADER = ("Data", "Conta Débito", "Conta Crédito", "Valor", "Histórico", "Lote")
COMPANY_COLUMN = "Código Empresa"


def format_date(row: OutputRow) -> str:
    return row.date.strftime("%d/%m/%Y")


def format_amount(amount: Decimal) -> str:
    """``Decimal("1500")`` -> ``"1500,00"``."""
    return f"{amount.quantize(Decimal('0.01'))}".replace(".", ",")


def render_line(row: OutputRow) -> str:
    return " | ".join(
        (
            format_date(row),
            row.debit_account,
            row.credit_account,
            format_amount(row.amount),
            row.narrative,
        )
    )


def render_lines(rows: Sequence[OutputRow]) -> list[str]:
    return [render_line(row) for row in rows]


def iter_lot_numbers(rows: Sequence[OutputRow]) -> Iterator[int | None]:
    """Yield the running lot number for boundary rows and ``None`` otherwise."""
    counter = 0
    for row in rows:
        if row.lot_boundary:
            counter += 1
            yield counter
        else:
            yield None


def upper_narrative(text: str, encoding: str = DEFAULT_ENCODING) -> str:
    """Upper-case ``text`` without leaving ``encoding``.

    Characters whose uppercase form the encoding cannot represent (``µ``, ``ÿ`` in latin-1)
    are kept as they are.
    """
    upper = text.upper()
    try:
        upper.encode(encoding)
    except UnicodeEncodeError:
        return "".join(_upper_char(char, encoding) for char in text)
    return upper


def _upper_char(char: str, encoding: str) -> str:
    upper = char.upper()
    try:
        upper.encode(encoding)
    except UnicodeEncodeError:
        return char
    return upper


def table_records(
    rows: Sequence[OutputRow],
    company_code: str | None = None,
    encoding: str = DEFAULT_ENCODING,
) -> list[list[str]]:
    header = list(TABLE_HEADER)
    if company_code:
        header.append(COMPANY_COLUMN)
    records = [header]
    for row, lot in zip(rows, iter_lot_numbers(rows)):
        record = [
            format_date(row),
            row.debit_account,
            row.credit_account,
            format_amount(row.amount),
            upper_narrative(row.narrative, encoding),
            "" if lot is None else str(lot),
        ]
        if company_code:
            record.append(company_code)
        records.append(record)
    return records


def render_table(
    rows: Sequence[OutputRow],
    company_code: str | None = None,
    encoding: str = DEFAULT_ENCODING,
) -> str:
    """Semicolon-delimited table; the narrative is upper-cased here only.

    Fields holding ``;`` or ``"`` are quoted the CSV way (``"A;B"``, embedded quotes doubled).
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", lineterminator="\n")
    writer.writerows(table_records(rows, company_code, encoding))
    return buffer.getvalue()


def _header_payload(header: HeaderRecord | None) -> dict[str, Any] | None:
    if header is None:
        return None
    return {
        "identifier": header.identifier,
        "code": header.code,
        "start_date": header.start_date.isoformat(),
        "end_date": header.end_date.isoformat(),
        "indicator": header.indicator,
        "version": header.version,
        "sequence": header.sequence,
    }


def render_json(result: ConversionResult) -> str:
    """Structured output for downstream tooling."""
    rows = result.rows
    payload = {
        "version": "1.0",
        "header": _header_payload(result.header),
        "totals": {
            "lines": result.total_lines,
            "entries": result.total_entries,
            "rows": len(rows),
            "excluded": len(result.excluded),
            "normalized_groups": result.normalized_groups,
        },
        "rows": [
            {
                "date": row.date.isoformat(),
                "debit": row.debit_account,
                "credit": row.credit_account,
                "amount": str(row.amount),
                "narrative": row.narrative,
                "lot": lot,
                "requires_review": row.requires_review,
            }
            for row, lot in zip(rows, iter_lot_numbers(rows))
        ],
        "warnings": list(result.warnings),
        "errors": list(result.errors),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
