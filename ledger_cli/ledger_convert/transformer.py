"""Regroup classified entries and rewrite payment/fee groups into double entries.

Entries sharing ``(date, title, counterparty)`` form a group. A group holding at least
one payment and one fee, nothing unclassified, and a single credit account across its
payments is rewritten as:

1. payments as debit-only rows (only the first opens a lot)
2. fees as debit-only rows
3. one credit-only row for the sum of payments and fees
4. discounts unchanged, each opening its own lot

Every other group, and any rewrite that fails the balance check, is emitted exactly as
it was read with every row opening a lot.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Union

from .types import ClassifiedEntry, OutputRow, Role

DEFAULT_TOLERANCE = Decimal("0.01")
ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class GroupKey:
    """Grouping key; untitled entries get a key of their own via ``entry_index``."""

    date: str
    title: str | None
    counterparty: str = ""
    entry_index: int | None = None

    @property
    def label(self) -> str:
        if self.title is None:
            return f"{self.date} | entry #{(self.entry_index or 0) + 1} (no title)"
        parts = [self.date, self.title]
        if self.counterparty:
            parts.append(self.counterparty)
        return " | ".join(parts)


@dataclass(slots=True)
class Group:
    key: GroupKey
    members: list[ClassifiedEntry] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RolePartition:
    payments: tuple[ClassifiedEntry, ...]
    fees: tuple[ClassifiedEntry, ...]
    discounts: tuple[ClassifiedEntry, ...]
    others: tuple[ClassifiedEntry, ...]


@dataclass(frozen=True, slots=True)
class Normalized:
    """The group was rewritten into balanced debit/credit rows."""

    key: GroupKey
    rows: tuple[OutputRow, ...]

    @property
    def normalized(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Unchanged:
    """The group is passed through as read; ``warning`` is set when that is noteworthy."""

    key: GroupKey
    rows: tuple[OutputRow, ...]
    reason: str
    warning: str | None = None

    @property
    def normalized(self) -> bool:
        return False


GroupOutcome = Union[Normalized, Unchanged]


def format_date(value) -> str:
    return value.strftime("%d/%m/%Y")


def group_key(item: ClassifiedEntry) -> GroupKey:
    date_label = format_date(item.entry.date)
    if item.title is None:
        return GroupKey(date=date_label, title=None, entry_index=item.index)
    return GroupKey(date=date_label, title=item.title, counterparty=item.counterparty or "")


def group_entries(items: Iterable[ClassifiedEntry]) -> list[Group]:
    """Group ``items`` by key, keeping first-encounter order of groups and members."""
    groups: dict[GroupKey, Group] = {}
    for item in items:
        key = group_key(item)
        group = groups.get(key)
        if group is None:
            group = groups[key] = Group(key=key)
        group.members.append(item)
    return list(groups.values())


def partition(members: Sequence[ClassifiedEntry]) -> RolePartition:
    ordered = sorted(members, key=lambda item: item.index)
    return RolePartition(
        payments=tuple(item for item in ordered if item.role is Role.PAYMENT),
        fees=tuple(item for item in ordered if item.role is Role.FEE),
        discounts=tuple(item for item in ordered if item.role is Role.DISCOUNT),
        others=tuple(item for item in ordered if item.role is Role.NONE),
    )


def original_rows(members: Sequence[ClassifiedEntry]) -> tuple[OutputRow, ...]:
    ordered = sorted(members, key=lambda item: item.index)
    return tuple(OutputRow.from_entry(item.entry, lot_boundary=True) for item in ordered)


def _has_account(account: str) -> bool:
    return bool(account.strip()) and set(account.strip()) != {"0"}


def balance_totals(parts: RolePartition) -> tuple[Decimal, Decimal]:
    """Return ``(debit, credit)`` totals of the rewritten group."""
    consolidated = sum((item.entry.amount for item in (*parts.payments, *parts.fees)), ZERO)
    debit_total = credit_total = consolidated
    for item in parts.discounts:
        detail = item.entry.detail
        has_debit = _has_account(detail.debit_account)
        has_credit = _has_account(detail.credit_account)
        if has_debit:
            debit_total += detail.amount
        if has_credit:
            credit_total += detail.amount
    return debit_total, credit_total


def build_rows(parts: RolePartition) -> tuple[OutputRow, ...]:
    rows: list[OutputRow] = []
    for position, item in enumerate(parts.payments):
        rows.append(OutputRow.debit_only(item.entry, lot_boundary=position == 0))
    for item in parts.fees:
        rows.append(OutputRow.debit_only(item.entry, lot_boundary=False))

    first_payment = parts.payments[0].entry
    credit_account = first_payment.detail.credit_account
    feeding = (*parts.payments, *parts.fees)
    rows.append(
        OutputRow(
            date=first_payment.date,
            debit_account="",
            credit_account=credit_account,
            amount=sum((item.entry.amount for item in feeding), ZERO),
            narrative=first_payment.narrative,
            lot_boundary=False,
            requires_review=any(item.entry.detail.requires_review for item in feeding),
            original_debit="",
            original_credit=credit_account,
        )
    )

    for item in parts.discounts:
        rows.append(OutputRow.from_entry(item.entry, lot_boundary=True))
    return tuple(rows)


def transform_group(group: Group, *, tolerance: Decimal = DEFAULT_TOLERANCE) -> GroupOutcome:
    key = group.key
    unchanged = original_rows(group.members)
    if key.title is None:
        return Unchanged(key, unchanged, reason="no title in narrative")

    parts = partition(group.members)
    if not parts.payments or not parts.fees:
        missing = "payment" if not parts.payments else "fee"
        return Unchanged(key, unchanged, reason=f"no {missing} in group")

    if parts.others:
        lines = ", ".join(str(item.entry.detail.line_no) for item in parts.others)
        reason = f"{len(parts.others)} unclassified line(s) (source lines {lines})"
        return Unchanged(key, unchanged, reason=reason, warning=_warning(key, reason))

    credit_accounts = sorted({item.entry.detail.credit_account for item in parts.payments})
    if len(credit_accounts) != 1:
        reason = (
            f"payments credit {len(credit_accounts)} different accounts "
            f"({', '.join(credit_accounts)})"
        )
        return Unchanged(key, unchanged, reason=reason, warning=_warning(key, reason))

    debit_total, credit_total = balance_totals(parts)
    if abs(debit_total - credit_total) > tolerance:
        reason = f"rewrite does not balance (debit {debit_total} vs credit {credit_total})"
        return Unchanged(key, unchanged, reason=reason, warning=_warning(key, reason))

    return Normalized(key, build_rows(parts))


def _warning(key: GroupKey, reason: str) -> str:
    return f"Group {key.label}: {reason}; original lines kept."


def transform_groups(
    items: Sequence[ClassifiedEntry], *, tolerance: Decimal = DEFAULT_TOLERANCE
) -> list[GroupOutcome]:
    return [transform_group(group, tolerance=tolerance) for group in group_entries(items)]


def collect_rows(outcomes: Iterable[GroupOutcome]) -> list[OutputRow]:
    return [row for outcome in outcomes for row in outcome.rows]


def collect_warnings(outcomes: Iterable[GroupOutcome]) -> list[str]:
    return [
        outcome.warning
        for outcome in outcomes
        if isinstance(outcome, Unchanged) and outcome.warning is not None
    ]
