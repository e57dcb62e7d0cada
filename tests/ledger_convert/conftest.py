"""Shared fixtures for ledger-convert tests.

Record lines are built from keyword arguments so each test states only the fields it
cares about; every builder produces a line of the exact widths the exporter writes.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import pytest


def make_header_line(
    *,
    identifier: str = "12345678000195",
    code: str = "00001",
    start: str = "01/01/2024",
    end: str = "31/01/2024",
    indicator: str = "N",
    version: str = "01",
    sequence: str = "00000001",
) -> str:
    return f"0100{identifier}{code}{start}{end}{indicator}{version}{sequence}"


def make_lot_line(
    *,
    lot: str = "00001",
    flag: str = "N",
    date: str = "15/01/2024",
    user: str = "OPERADOR",
) -> str:
    return f"0200{lot}{flag}{date}{user:<20}"


def make_detail_line(
    *,
    lot: str = "00001",
    debit: str = "1111111",
    credit: str = "9999999",
    cents: int = 10000,
    trailer: str = "0000001",
    narrative: str = "PAGTO TITULO 123 | FORNECEDOR ACME",
    suffix: str = "0000001",
) -> str:
    return f"0300{lot}{debit}{credit}{cents:015d}{trailer} {narrative} {suffix}"


@dataclass
class ExportBuilder:
    """Accumulates lot/detail pairs into an export text."""

    date: str = "15/01/2024"
    lines: list[str] = field(default_factory=list)
    _next_lot: int = 1

    def header(self, **kwargs: str) -> ExportBuilder:
        self.lines.append(make_header_line(**kwargs))
        return self

    def entry(
        self,
        narrative: str,
        *,
        debit: str = "1111111",
        credit: str = "9999999",
        cents: int = 10000,
        date: str | None = None,
    ) -> ExportBuilder:
        lot = f"{self._next_lot:05d}"
        self._next_lot += 1
        self.lines.append(make_lot_line(lot=lot, date=date or self.date))
        self.lines.append(
            make_detail_line(lot=lot, debit=debit, credit=credit, cents=cents, narrative=narrative)
        )
        return self

    def raw(self, line: str) -> ExportBuilder:
        self.lines.append(line)
        return self

    def trailer(self) -> ExportBuilder:
        self.lines.append(f"9900{len(self.lines) + 1:08d}")
        return self

    def text(self, newline: str = "\n") -> str:
        return newline.join(self.lines) + newline


@pytest.fixture()
def export() -> ExportBuilder:
    return ExportBuilder()


@pytest.fixture()
def header_line() -> Callable[..., str]:
    return make_header_line


@pytest.fixture()
def lot_line() -> Callable[..., str]:
    return make_lot_line


@pytest.fixture()
def detail_line() -> Callable[..., str]:
    return make_detail_line
