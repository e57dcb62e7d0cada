"""Terminal preview of converted rows."""

from __future__ import annotations

import sys
from collections.abc import Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from .serializer import format_amount, format_date, iter_lot_numbers
from .types import OutputRow


def build_preview_table(rows: Sequence[OutputRow], *, title: str | None = None) -> Table:
    table = Table(box=box.SIMPLE, show_header=True, header_style="bold", title=title)
    table.add_column("Data")
    table.add_column("Débito")
    table.add_column("Crédito")
    table.add_column("Valor", justify="right")
    table.add_column("Histórico", overflow="fold")
    table.add_column("Lote", justify="right")
    table.add_column("Revisar")
    for row, lot in zip(rows, iter_lot_numbers(rows)):
        table.add_row(
            format_date(row),
            row.debit_account,
            row.credit_account,
            format_amount(row.amount),
            row.narrative,
            "" if lot is None else str(lot),
            "sim" if row.requires_review else "",
        )
    return table


def render_preview(rows: Sequence[OutputRow], *, stream=None, title: str | None = None) -> None:
    output_stream = stream or sys.stdout
    console = Console(file=output_stream, highlight=False, force_terminal=False)
    if not rows:
        console.print("No rows to display.")
        return
    console.print(build_preview_table(rows, title=title))
