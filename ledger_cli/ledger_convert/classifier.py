"""Narrative classification: title, counterparty and role extraction.

Roles are decided by :data:`ROLE_RULES`, evaluated top to bottom with the first match
winning. Discounts come before fees and fees before payments: a fee line usually repeats
the ``PAGTO TITULO`` text of the payment it belongs to.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .types import ClassifiedEntry, LedgerEntry, Role

SEGMENT_SEPARATOR = " | "

# Title runs until the next segment separator or the end of the narrative.
TITLE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bPAGTO\s+TITULO\s+(.+?)(?:\s+\|\s+|$)", re.IGNORECASE),
    re.compile(r"\bTITULO\s+NR\s+(.+?)(?:\s+\|\s+|$)", re.IGNORECASE),
)

_PAYMENT_RE = re.compile(r"\bPAGTO\s+TITULO\b")


@dataclass(frozen=True, slots=True)
class RoleRule:
    """Map narratives satisfying ``matches`` to ``role``."""

    role: Role
    name: str
    matches: Callable[[str], bool]


def _contains_any(*needles: str) -> Callable[[str], bool]:
    def matcher(upper: str) -> bool:
        return any(needle in upper for needle in needles)

    return matcher


ROLE_RULES: tuple[RoleRule, ...] = (
    RoleRule(
        Role.DISCOUNT,
        "discount",
        _contains_any("VLR DESCONTO", "VALOR DESCONTO", " DESCONTO "),
    ),
    RoleRule(
        Role.FEE,
        "fee",
        _contains_any("VLR TARIFAS", "VLR TARIFA", " TARIFA ", " TARIFAS "),
    ),
    RoleRule(Role.PAYMENT, "payment", lambda upper: bool(_PAYMENT_RE.search(upper))),
)


def extract_title(narrative: str) -> str | None:
    """Return the business title referenced by ``narrative``, if any."""
    text = (narrative or "").strip()
    if not text:
        return None
    for pattern in TITLE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip() or None
    return None


def extract_counterparty(narrative: str) -> str | None:
    """Return the last pipe-delimited segment of ``narrative``."""
    if not narrative or SEGMENT_SEPARATOR not in narrative:
        return None
    parts = [part.strip() for part in narrative.split(SEGMENT_SEPARATOR)]
    parts = [part for part in parts if part]
    if len(parts) < 2:
        return None
    return parts[-1]


def classify_role(narrative: str, rules: Sequence[RoleRule] = ROLE_RULES) -> Role:
    upper = (narrative or "").upper()
    for rule in rules:
        if rule.matches(upper):
            return rule.role
    return Role.NONE


def classify_entry(entry: LedgerEntry) -> ClassifiedEntry:
    narrative = entry.narrative
    return ClassifiedEntry(
        entry=entry,
        title=extract_title(narrative),
        counterparty=extract_counterparty(narrative),
        role=classify_role(narrative),
    )


def classify_entries(entries: Sequence[LedgerEntry]) -> list[ClassifiedEntry]:
    return [classify_entry(entry) for entry in entries]
