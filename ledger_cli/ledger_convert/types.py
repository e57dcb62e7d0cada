"""Dataclasses describing parsed ledger exports and their converted rows."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .transformer import GroupOutcome


class Role(str, Enum):
    """Semantic role of a ledger entry, derived from its narrative."""

    PAYMENT = "payment"
    FEE = "fee"
    DISCOUNT = "discount"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class HeaderRecord:
    """``0100`` file header."""

    identifier: str
    code: str
    start_date: date
    end_date: date
    indicator: str
    version: str
    sequence: str
    line_no: int


@dataclass(frozen=True, slots=True)
class LotRecord:
    """``0200`` lot header; exactly one precedes each detail record."""

    lot_id: str
    flag: str
    date: date
    user: str
    line_no: int


@dataclass(frozen=True, slots=True)
class DetailRecord:
    """``0300`` money-moving record."""

    lot_id: str
    debit_account: str
    credit_account: str
    amount: Decimal
    trailer_tag: str
    narrative: str
    suffix_tag: str
    line_no: int
    requires_review: bool = False


@dataclass(frozen=True, slots=True)
class TrailerRecord:
    """``9900`` trailer, kept verbatim."""

    raw: str
    line_no: int


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """A lot record paired with its detail record."""

    index: int
    lot: LotRecord
    detail: DetailRecord

    @property
    def date(self) -> date:
        return self.lot.date

    @property
    def narrative(self) -> str:
        return self.detail.narrative

    @property
    def amount(self) -> Decimal:
        return self.detail.amount


@dataclass(frozen=True, slots=True)
class ClassifiedEntry:
    """Ledger entry annotated with what its narrative says about it."""

    entry: LedgerEntry
    title: str | None
    counterparty: str | None
    role: Role

    @property
    def index(self) -> int:
        return self.entry.index


@dataclass(frozen=True, slots=True)
class OutputRow:
    """Normalized row handed to the serializer.

    ``debit_account`` / ``credit_account`` are empty strings when the side is cleared.
    ``original_debit`` / ``original_credit`` keep the source record's accounts.
    """

    date: date
    debit_account: str
    credit_account: str
    amount: Decimal
    narrative: str
    lot_boundary: bool
    requires_review: bool = False
    original_debit: str = ""
    original_credit: str = ""

    @classmethod
    def from_entry(cls, entry: LedgerEntry, *, lot_boundary: bool = True) -> OutputRow:
        """Render ``entry`` unchanged."""
        detail = entry.detail
        return cls(
            date=entry.date,
            debit_account=detail.debit_account,
            credit_account=detail.credit_account,
            amount=detail.amount,
            narrative=detail.narrative,
            lot_boundary=lot_boundary,
            requires_review=detail.requires_review,
            original_debit=detail.debit_account,
            original_credit=detail.credit_account,
        )

    @classmethod
    def debit_only(cls, entry: LedgerEntry, *, lot_boundary: bool) -> OutputRow:
        """Render ``entry`` with its credit side cleared."""
        detail = entry.detail
        return cls(
            date=entry.date,
            debit_account=detail.debit_account,
            credit_account="",
            amount=detail.amount,
            narrative=detail.narrative,
            lot_boundary=lot_boundary,
            requires_review=detail.requires_review,
            original_debit=detail.debit_account,
            original_credit=detail.credit_account,
        )


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Everything the record parser could recover from one input text."""

    header: HeaderRecord | None
    entries: tuple[LedgerEntry, ...]
    errors: tuple[str, ...]
    trailer: str | None = None
    total_lines: int = 0

    def __iter__(self) -> Iterator[LedgerEntry]:
        return iter(self.entries)

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self.entries)


@dataclass(slots=True)
class ConversionResult:
    """Output of one engine run: rows plus both error channels."""

    rows: list[OutputRow]
    warnings: list[str]
    errors: list[str]
    header: HeaderRecord | None = None
    trailer: str | None = None
    outcomes: list[GroupOutcome] = field(default_factory=list)
    excluded: list[OutputRow] = field(default_factory=list)
    total_lines: int = 0
    total_entries: int = 0

    @property
    def ok(self) -> bool:
        """True when no structural errors were recorded."""
        return not self.errors

    @property
    def normalized_groups(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.normalized)

    @property
    def lines(self) -> list[str]:
        """Pipe-delimited display lines for ``rows``."""
        from .serializer import render_lines

        return render_lines(self.rows)

    def table(self, company_code: str | None = None, encoding: str = "latin-1") -> str:
        """Semicolon table for ``rows``, see :func:`serializer.render_table`."""
        from .serializer import render_table

        return render_table(self.rows, company_code, encoding)
