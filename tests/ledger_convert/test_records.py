from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from ledger_cli.ledger_convert import records
from ledger_cli.ledger_convert.types import DetailRecord, HeaderRecord, LotRecord, TrailerRecord
from ledger_cli.shared.exceptions import RecordError


def test_parse_amount_divides_cents() -> None:
    assert records.parse_amount("000000000150000") == Decimal("1500.00")
    assert records.parse_amount("000000000000001") == Decimal("0.01")


def test_parse_header_fields(header_line) -> None:
    header = records.parse_header(header_line(), 1)

    assert isinstance(header, HeaderRecord)
    assert header.identifier == "12345678000195"
    assert header.code == "00001"
    assert header.start_date == date(2024, 1, 1)
    assert header.end_date == date(2024, 1, 31)
    assert header.indicator == "N"
    assert header.version == "01"
    assert header.sequence == "00000001"


@pytest.mark.parametrize(
    "overrides, fragment",
    [
        ({"identifier": "1234567800019X"}, "identifier"),
        ({"code": "0000A"}, "code"),
        ({"start": "32/01/2024"}, "start date"),
        ({"end": "2024-01-31"}, "end date"),
        ({"version": "1A"}, "version"),
        ({"sequence": "0000000X"}, "sequence"),
    ],
)
def test_parse_header_rejects_bad_fields(header_line, overrides, fragment) -> None:
    with pytest.raises(RecordError) as excinfo:
        records.parse_header(header_line(**overrides), 3)
    assert str(excinfo.value).startswith("L3:")
    assert fragment in str(excinfo.value)


def test_parse_header_rejects_short_line(header_line) -> None:
    with pytest.raises(RecordError, match="too short"):
        records.parse_header(header_line()[:50], 1)


def test_parse_lot_trims_user(lot_line) -> None:
    lot = records.parse_lot(lot_line(lot="00042", user="MARIA"), 2)

    assert isinstance(lot, LotRecord)
    assert lot.lot_id == "00042"
    assert lot.flag == "N"
    assert lot.date == date(2024, 1, 15)
    assert lot.user == "MARIA"


@pytest.mark.parametrize("length", [20, 39])
def test_parse_lot_rejects_line_shorter_than_user_field(lot_line, length: int) -> None:
    line = lot_line(user="")[:length]

    with pytest.raises(RecordError, match="too short"):
        records.parse_lot(line, 2)


def test_parse_lot_accepts_blank_user_field(lot_line) -> None:
    lot = records.parse_lot(lot_line(user=""), 2)

    assert lot.user == ""


def test_normalize_requires_letters_in_alternate_prefix() -> None:
    assert records.normalize_alternate_prefix("02a1012026N15/01/2024") == "02a1012026N15/01/2024"


def test_parse_lot_rejects_non_digit_lot(lot_line) -> None:
    with pytest.raises(RecordError, match="lot id"):
        records.parse_lot(lot_line(lot="00A42"), 2)


def test_parse_detail_decomposes_prefix(detail_line) -> None:
    line = detail_line(
        lot="00007",
        debit="1234567",
        credit="7654321",
        cents=150000,
        trailer="0000099",
        narrative="PAGTO TITULO 55 | ACME",
        suffix="1234567",
    )

    detail = records.parse_detail(line, 4)

    assert isinstance(detail, DetailRecord)
    assert detail.lot_id == "00007"
    assert detail.debit_account == "1234567"
    assert detail.credit_account == "7654321"
    assert detail.amount == Decimal("1500.00")
    assert detail.trailer_tag == "0000099"
    assert detail.narrative == "PAGTO TITULO 55 | ACME"
    assert detail.suffix_tag == "1234567"
    assert detail.requires_review is False


def test_parse_detail_short_prefix_requires_review(detail_line) -> None:
    line = detail_line(trailer="000001")

    detail = records.parse_detail(line, 4)

    assert detail.trailer_tag == "000001"
    assert detail.requires_review is True


def test_parse_detail_ignores_trailing_whitespace(detail_line) -> None:
    detail = records.parse_detail(detail_line(narrative="TARIFA BANCARIA") + "   ", 1)

    assert detail.narrative == "TARIFA BANCARIA"
    assert detail.suffix_tag == "0000001"


@pytest.mark.parametrize(
    "line, fragment",
    [
        ("0300" + "1" * 60, "no space"),
        ("0300" + "1" * 30 + " HIST 0000001", "prefix too short"),
        ("0300" + "1" * 42 + " HIST 0000001", "prefix too long"),
    ],
)
def test_parse_detail_rejects_bad_prefix(line, fragment) -> None:
    with pytest.raises(RecordError, match=fragment):
        records.parse_detail(line, 9)


def test_parse_detail_rejects_non_digit_amount(detail_line) -> None:
    line = detail_line()
    broken = line[:30] + "X" + line[31:]
    with pytest.raises(RecordError, match="amount"):
        records.parse_detail(broken, 1)


def test_parse_detail_requires_suffix(detail_line) -> None:
    line = detail_line(suffix="12345AB")
    with pytest.raises(RecordError, match="suffix"):
        records.parse_detail(line, 1)


def test_decode_line_dispatches_on_prefix(header_line, lot_line, detail_line) -> None:
    assert isinstance(records.decode_line(header_line(), 1), HeaderRecord)
    assert isinstance(records.decode_line(lot_line(), 2), LotRecord)
    assert isinstance(records.decode_line(detail_line(), 3), DetailRecord)
    assert isinstance(records.decode_line("990000000004", 4), TrailerRecord)


def test_decode_line_rejects_unknown_prefix() -> None:
    with pytest.raises(RecordError, match="unknown record type '0400'"):
        records.decode_line("0400 whatever", 7)


def test_normalize_alternate_prefix() -> None:
    assert records.normalize_alternate_prefix("02ak012026N15/01/2024") == "020012026N15/01/2024"
    assert records.normalize_alternate_prefix("03ak0120261111111") == "0300120261111111"


def test_normalize_leaves_canonical_lines_alone(lot_line, detail_line) -> None:
    assert records.normalize_alternate_prefix(lot_line(flag="1")) == lot_line(flag="1")
    assert records.normalize_alternate_prefix(detail_line()) == detail_line()


def test_iter_lines_skips_blanks_and_keeps_numbering() -> None:
    text = "0200A\r\n\r\n   \n9900X\n"

    assert list(records.iter_lines(text)) == [(1, "0200A"), (4, "9900X")]
