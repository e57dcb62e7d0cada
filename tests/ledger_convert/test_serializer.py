from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

from ledger_cli.ledger_convert.engine import convert_text
from ledger_cli.ledger_convert.serializer import (
    format_amount,
    iter_lot_numbers,
    render_json,
    render_line,
    render_table,
    upper_narrative,
)
from ledger_cli.ledger_convert.types import OutputRow


def _row(amount: str, *, lot_boundary: bool, narrative: str = "pagto titulo 1 | acme") -> OutputRow:
    return OutputRow(
        date=date(2024, 1, 15),
        debit_account="1111111",
        credit_account="",
        amount=Decimal(amount),
        narrative=narrative,
        lot_boundary=lot_boundary,
    )


def test_format_amount_uses_comma_decimal() -> None:
    assert format_amount(Decimal("1500")) == "1500,00"
    assert format_amount(Decimal("0.5")) == "0,50"
    assert format_amount(Decimal("155.00")) == "155,00"


def test_render_line() -> None:
    row = _row("100.00", lot_boundary=True)

    assert render_line(row) == "15/01/2024 | 1111111 |  | 100,00 | pagto titulo 1 | acme"


def test_lot_numbers_only_on_boundary_rows() -> None:
    rows = [
        _row("1", lot_boundary=True),
        _row("2", lot_boundary=False),
        _row("3", lot_boundary=True),
        _row("4", lot_boundary=False),
        _row("5", lot_boundary=True),
    ]

    assert list(iter_lot_numbers(rows)) == [1, None, 2, None, 3]


def test_render_table_header_and_rows() -> None:
    rows = [_row("100", lot_boundary=True), _row("5", lot_boundary=False)]

    lines = render_table(rows).splitlines()

    assert lines[0] == "Data;Conta Débito;Conta Crédito;Valor;Histórico;Lote"
    assert lines[1] == "15/01/2024;1111111;;100,00;PAGTO TITULO 1 | ACME;1"
    assert lines[2] == "15/01/2024;1111111;;5,00;PAGTO TITULO 1 | ACME;"


def test_render_table_appends_company_code() -> None:
    lines = render_table([_row("1", lot_boundary=True)], company_code="0042").splitlines()

    assert lines[0].endswith(";Lote;Código Empresa")
    assert lines[1].endswith(";1;0042")


def test_render_table_upper_cases_accented_narratives() -> None:
    lines = render_table([_row("1", lot_boundary=True, narrative="tarifa manutenção")]).splitlines()

    assert "TARIFA MANUTENÇÃO" in lines[1]


def test_render_table_keeps_characters_without_latin1_uppercase() -> None:
    rows = [_row("1", lot_boundary=True, narrative="pagto titulo 1 | café µ ltda ÿ")]

    table = render_table(rows, encoding="latin-1")

    assert "PAGTO TITULO 1 | CAFÉ µ LTDA ÿ" in table
    table.encode("latin-1")


def test_upper_narrative_uses_full_uppercase_when_encodable() -> None:
    assert upper_narrative("µ ÿ", encoding="utf-8") == "\u039c \u0178"


def test_render_table_quotes_delimiters_and_quotes() -> None:
    rows = [_row("1", lot_boundary=True, narrative='ref; "nf" 12')]

    lines = render_table(rows).splitlines()

    assert lines[1] == '15/01/2024;1111111;;1,00;"REF; ""NF"" 12";1'


def test_conversion_result_renders_lines_and_table(export) -> None:
    export.entry("TARIFA MANUTENÇÃO CONTA", debit="3333333", credit="4444444", cents=990)
    result = convert_text(export.text())

    assert result.lines == ["15/01/2024 | 3333333 | 4444444 | 9,90 | TARIFA MANUTENÇÃO CONTA"]
    assert result.table(company_code="0042") == render_table(result.rows, "0042")


def test_render_json_payload(export) -> None:
    export.header()
    export.entry("PAGTO TITULO 1 | ACME", cents=10000)
    export.entry("VLR TARIFA PAGTO TITULO 1 | ACME", debit="2222222", cents=500)
    result = convert_text(export.text())

    payload = json.loads(render_json(result))

    assert payload["header"]["identifier"] == "12345678000195"
    assert payload["totals"]["entries"] == 2
    assert payload["totals"]["rows"] == 3
    assert payload["totals"]["normalized_groups"] == 1
    assert [row["lot"] for row in payload["rows"]] == [1, None, None]
    assert payload["rows"][2]["amount"] == "105.00"
    assert payload["errors"] == [] and payload["warnings"] == []
