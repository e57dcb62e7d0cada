"""Pair lot headers with their detail records.

Assembly is a fold over the decoded lines: :func:`step` takes the current
:class:`AssemblyState` plus one line and returns the next state together with the
entry or structural error that line produced. No state survives between calls to
:func:`assemble`, so any chunk of input can be replayed on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from ledger_cli.shared.exceptions import RecordError

from . import records
from .types import (
    DetailRecord,
    HeaderRecord,
    LedgerEntry,
    LotRecord,
    ParseResult,
    TrailerRecord,
)


@dataclass(frozen=True, slots=True)
class AssemblyState:
    """Accumulator threaded through :func:`step`."""

    pending: LotRecord | None = None
    header: HeaderRecord | None = None
    trailer: TrailerRecord | None = None
    next_index: int = 0


@dataclass(frozen=True, slots=True)
class StepResult:
    state: AssemblyState
    entry: LedgerEntry | None = None
    error: str | None = None


def step(state: AssemblyState, line_no: int, line: str) -> StepResult:
    """Consume one non-blank line."""
    try:
        record = records.decode_line(line, line_no)
    except RecordError as exc:
        if records.record_type(line) == records.DETAIL and state.pending is not None:
            # A detail line always settles the pending lot, even when it is unreadable.
            message = f"{exc} (lot {state.pending.lot_id} discarded)"
            return StepResult(replace(state, pending=None), error=message)
        return StepResult(state, error=str(exc))

    if isinstance(record, HeaderRecord):
        if state.header is not None:
            return StepResult(
                state,
                error=str(
                    RecordError(
                        line_no,
                        f"duplicate {records.HEADER} header; keeping the one from "
                        f"line {state.header.line_no}",
                    )
                ),
            )
        return StepResult(replace(state, header=record))

    if isinstance(record, LotRecord):
        if state.pending is not None:
            message = (
                f"{records.LOT} found but previous lot {state.pending.lot_id} "
                f"(line {state.pending.line_no}) had no {records.DETAIL}; lot orphaned"
            )
            return StepResult(replace(state, pending=record), error=str(RecordError(line_no, message)))
        return StepResult(replace(state, pending=record))

    if isinstance(record, DetailRecord):
        return _attach_detail(state, record)

    return StepResult(replace(state, trailer=record))


def _attach_detail(state: AssemblyState, detail: DetailRecord) -> StepResult:
    pending = state.pending
    if pending is None:
        return StepResult(
            state,
            error=str(
                RecordError(detail.line_no, f"{records.DETAIL} found without a preceding {records.LOT}")
            ),
        )
    if detail.lot_id != pending.lot_id:
        message = (
            f"lot of {records.DETAIL} ({detail.lot_id}) differs from pending "
            f"{records.LOT} ({pending.lot_id}); both discarded"
        )
        return StepResult(replace(state, pending=None), error=str(RecordError(detail.line_no, message)))

    entry = LedgerEntry(index=state.next_index, lot=pending, detail=detail)
    return StepResult(replace(state, pending=None, next_index=state.next_index + 1), entry=entry)


def finish(state: AssemblyState) -> str | None:
    """Return the end-of-input error, if a lot is still waiting for its detail."""
    if state.pending is None:
        return None
    return str(
        RecordError(
            None,
            f"lot {state.pending.lot_id} (line {state.pending.line_no}) pending "
            f"with no matching {records.DETAIL}",
        )
    )


def assemble(text: str, *, normalize_prefixes: bool = True) -> ParseResult:
    """Parse ``text`` into ledger entries plus the structural errors found on the way."""
    state = AssemblyState()
    entries: list[LedgerEntry] = []
    errors: list[str] = []
    for line_no, line in records.iter_lines(text, normalize_prefixes=normalize_prefixes):
        result = step(state, line_no, line)
        state = result.state
        if result.entry is not None:
            entries.append(result.entry)
        if result.error is not None:
            errors.append(result.error)

    trailing = finish(state)
    if trailing is not None:
        errors.append(trailing)

    return ParseResult(
        header=state.header,
        entries=tuple(entries),
        errors=tuple(errors),
        trailer=state.trailer.raw if state.trailer else None,
        total_lines=len(records.split_lines(text)) if text else 0,
    )
