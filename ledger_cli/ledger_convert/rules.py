"""Exclusion rules keyed on a row's original debit/credit accounts."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from ledger_cli.shared.config import ExclusionSettings
from ledger_cli.shared.exceptions import ConfigurationError

from .types import OutputRow


@dataclass(frozen=True, slots=True)
class ExclusionRule:
    debit: str = ""
    credit: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        if not self.debit and not self.credit:
            raise ConfigurationError("Exclusion rule needs a debit account, a credit account, or both.")

    def matches(self, row: OutputRow) -> bool:
        # Rewritten rows clear one side, so compare against what the source record said.
        if self.debit and row.original_debit != self.debit:
            return False
        if self.credit and row.original_credit != self.credit:
            return False
        return True

    @classmethod
    def from_settings(cls, settings: ExclusionSettings) -> ExclusionRule:
        return cls(debit=settings.debit, credit=settings.credit, description=settings.description)


def compile_rules(settings: Iterable[ExclusionSettings]) -> list[ExclusionRule]:
    return [ExclusionRule.from_settings(item) for item in settings]


def apply_exclusions(
    rows: Sequence[OutputRow], rules: Sequence[ExclusionRule]
) -> tuple[list[OutputRow], list[OutputRow]]:
    """Split ``rows`` into ``(kept, excluded)``.

    When an excluded row opened a lot, the next kept row opens it instead so the rest of
    that lot does not merge into the previous one.
    """
    if not rules:
        return list(rows), []
    kept: list[OutputRow] = []
    excluded: list[OutputRow] = []
    carry_boundary = False
    for row in rows:
        if any(rule.matches(row) for rule in rules):
            excluded.append(row)
            carry_boundary = carry_boundary or row.lot_boundary
            continue
        if carry_boundary and not row.lot_boundary:
            row = replace(row, lot_boundary=True)
        carry_boundary = False
        kept.append(row)
    return kept, excluded
