"""Fixed-width record decoding for ledger exports.

An export is a sequence of text lines, each starting with a 4-character record type:

* ``0100`` file header (positional)
* ``0200`` lot header (positional)
* ``0300`` detail record: a 45-character numeric prefix, a space, the free-text
  narrative and a trailing 7-digit suffix tag
* ``9900`` trailer, kept verbatim

Every decoder raises :class:`RecordError` for a malformed line; pairing lots with
details and collecting errors is the assembler's job.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from datetime import date, datetime
from decimal import Decimal
from typing import Union

from ledger_cli.shared.exceptions import RecordError

from .types import DetailRecord, HeaderRecord, LotRecord, TrailerRecord

HEADER = "0100"
LOT = "0200"
DETAIL = "0300"
TRAILER = "9900"

HEADER_MIN_LENGTH = 54
LOT_MIN_LENGTH = 40
DETAIL_PREFIX_LENGTH = 45
# One digit short: the trailer tag then carries 6 digits and the entry needs review.
DETAIL_SHORT_PREFIX_LENGTH = 44
SUFFIX_LENGTH = 7

_DATE_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")
# Some exporters emit ``02ak012026`` for ``020012026``: two letters and a 6-digit lot id.
_ALTERNATE_PREFIX_RE = re.compile(r"^(0[23])[A-Za-z]{2}(\d{6})(.*)$", re.DOTALL)

Record = Union[HeaderRecord, LotRecord, DetailRecord, TrailerRecord]


def split_lines(text: str) -> list[str]:
    """Split ``text`` on LF or CRLF without dropping blank lines."""
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def normalize_alternate_prefix(line: str) -> str:
    """Rewrite the alternate ``02xx``/``03xx`` prefix into the canonical one."""
    match = _ALTERNATE_PREFIX_RE.match(line)
    if not match:
        return line
    record_type, lot6, rest = match.groups()
    return f"{record_type}00{lot6[1:]}{rest}"


def iter_lines(text: str, *, normalize_prefixes: bool = True) -> Iterator[tuple[int, str]]:
    """Yield ``(line_no, line)`` for every non-blank line, 1-based."""
    for line_no, line in enumerate(split_lines(text), start=1):
        if not line.strip():
            continue
        yield line_no, normalize_alternate_prefix(line) if normalize_prefixes else line


def _require_digits(value: str, width: int, field_name: str, line_no: int, record: str) -> str:
    if len(value) != width or not _ascii_digits(value):
        raise RecordError(
            line_no, f"invalid {field_name} in {record} ({width} digits expected): '{value}'"
        )
    return value


def _ascii_digits(value: str) -> bool:
    return value.isascii() and value.isdigit()


def parse_date(value: str, field_name: str, line_no: int, record: str) -> date:
    """Parse a fixed 10-character ``dd/mm/yyyy`` date."""
    if not _DATE_RE.match(value):
        raise RecordError(line_no, f"invalid {field_name} in {record} (dd/mm/yyyy expected): '{value}'")
    try:
        return datetime.strptime(value, "%d/%m/%Y").date()
    except ValueError as exc:
        raise RecordError(line_no, f"invalid {field_name} in {record}: '{value}' ({exc})") from exc


def parse_header(line: str, line_no: int) -> HeaderRecord:
    if len(line) < HEADER_MIN_LENGTH:
        raise RecordError(
            line_no, f"{HEADER} too short (len={len(line)}; expected >= {HEADER_MIN_LENGTH})"
        )
    identifier = _require_digits(line[4:18], 14, "identifier", line_no, HEADER)
    code = _require_digits(line[18:23], 5, "code", line_no, HEADER)
    start_date = parse_date(line[23:33], "start date", line_no, HEADER)
    end_date = parse_date(line[33:43], "end date", line_no, HEADER)
    indicator = line[43:44]
    version = _require_digits(line[44:46], 2, "version", line_no, HEADER)
    sequence = _require_digits(line[46:54], 8, "sequence", line_no, HEADER)
    return HeaderRecord(
        identifier=identifier,
        code=code,
        start_date=start_date,
        end_date=end_date,
        indicator=indicator,
        version=version,
        sequence=sequence,
        line_no=line_no,
    )


def parse_lot(line: str, line_no: int) -> LotRecord:
    if len(line) < LOT_MIN_LENGTH:
        raise RecordError(
            line_no, f"{LOT} too short (len={len(line)}; expected >= {LOT_MIN_LENGTH})"
        )
    lot_id = _require_digits(line[4:9], 5, "lot id", line_no, LOT)
    flag = line[9:10]
    lot_date = parse_date(line[10:20], "date", line_no, LOT)
    return LotRecord(
        lot_id=lot_id,
        flag=flag,
        date=lot_date,
        user=line[20:40].rstrip(),
        line_no=line_no,
    )


def parse_amount(raw: str) -> Decimal:
    """Convert a 15-digit integer-cents field into a two-place Decimal."""
    return (Decimal(int(raw)) / 100).quantize(Decimal("0.01"))


def parse_detail(line: str, line_no: int) -> DetailRecord:
    separator = line.find(" ")
    if separator == -1:
        raise RecordError(line_no, f"{DETAIL} has no space between prefix and narrative")

    prefix = line[:separator]
    if len(prefix) < DETAIL_SHORT_PREFIX_LENGTH:
        raise RecordError(
            line_no,
            f"{DETAIL} prefix too short (len={len(prefix)}; expected {DETAIL_PREFIX_LENGTH})",
        )
    if len(prefix) > DETAIL_PREFIX_LENGTH:
        raise RecordError(
            line_no,
            f"{DETAIL} prefix too long (len={len(prefix)}; expected {DETAIL_PREFIX_LENGTH})",
        )
    short_prefix = len(prefix) == DETAIL_SHORT_PREFIX_LENGTH

    lot_id = _require_digits(prefix[4:9], 5, "lot id", line_no, DETAIL)
    debit = _require_digits(prefix[9:16], 7, "debit account", line_no, DETAIL)
    credit = _require_digits(prefix[16:23], 7, "credit account", line_no, DETAIL)
    raw_amount = _require_digits(prefix[23:38], 15, "amount", line_no, DETAIL)
    trailer_tag = _require_digits(
        prefix[38:], 6 if short_prefix else 7, "trailer tag", line_no, DETAIL
    )

    body = line.rstrip()
    suffix = body[-SUFFIX_LENGTH:]
    if len(body) < separator + 1 + SUFFIX_LENGTH or not _ascii_digits(suffix):
        raise RecordError(line_no, f"{DETAIL} is missing its trailing {SUFFIX_LENGTH}-digit suffix")
    narrative = body[separator + 1 : -SUFFIX_LENGTH].rstrip()

    return DetailRecord(
        lot_id=lot_id,
        debit_account=debit,
        credit_account=credit,
        amount=parse_amount(raw_amount),
        trailer_tag=trailer_tag,
        narrative=narrative,
        suffix_tag=suffix,
        line_no=line_no,
        requires_review=short_prefix,
    )


def parse_trailer(line: str, line_no: int) -> TrailerRecord:
    return TrailerRecord(raw=line, line_no=line_no)


DECODERS: dict[str, Callable[[str, int], Record]] = {
    HEADER: parse_header,
    LOT: parse_lot,
    DETAIL: parse_detail,
    TRAILER: parse_trailer,
}


def record_type(line: str) -> str:
    return line[:4]


def decode_line(line: str, line_no: int) -> Record:
    """Dispatch ``line`` to the decoder for its record type."""
    kind = record_type(line)
    decoder = DECODERS.get(kind)
    if decoder is None:
        raise RecordError(line_no, f"unknown record type '{kind}'")
    return decoder(line, line_no)
