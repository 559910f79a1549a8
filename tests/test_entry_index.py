# Tests for the entry index (contents.js) parser

import json
from datetime import datetime, timezone

import pytest

from agilekeychain.exceptions import FormatError, MalformedDocument, MalformedEntry
from agilekeychain.index.entries import EntryRecord, parse_entries

ROW = ["5ADFF73C", "webforms.WebForm", "Gmail", "accounts.google.com", 1302894934, "", 0, "N"]


def _rows(count=3):
    return [[f"ID{i}"] + ROW[1:4] + [1302894934 + i] + ROW[5:] for i in range(count)]


class TestParseEntries:
    def test_decodes_row(self):
        (entry,) = parse_entries(json.dumps([ROW]))
        assert entry == EntryRecord(
            id="5ADFF73C",
            entry_type="webforms.WebForm",
            title="Gmail",
            site="accounts.google.com",
            date=1302894934,
            unknown1="",
            unknown2=0,
            unknown3="N",
        )

    def test_preserves_length_and_order(self):
        entries = parse_entries(json.dumps(_rows(5)))
        assert len(entries) == 5
        assert [e.id for e in entries] == ["ID0", "ID1", "ID2", "ID3", "ID4"]

    def test_accepts_parsed_list_and_bytes(self):
        assert parse_entries(_rows(2)) == parse_entries(json.dumps(_rows(2)).encode("utf-8"))

    def test_empty_index(self):
        assert parse_entries("[]") == ()

    def test_integral_float_accepted(self):
        row = ROW[:4] + [1302894934.0] + ROW[5:]
        (entry,) = parse_entries([row])
        assert entry.date == 1302894934
        assert isinstance(entry.date, int)

    def test_modified_at(self):
        (entry,) = parse_entries([ROW])
        assert entry.modified_at == datetime(2011, 4, 15, 19, 15, 34, tzinfo=timezone.utc)

    def test_records_are_immutable(self):
        (entry,) = parse_entries([ROW])
        with pytest.raises(Exception):
            entry.title = "changed"

    def test_missing_field_reports_index(self):
        rows = _rows(4)
        rows[2] = rows[2][:7]
        with pytest.raises(MalformedEntry) as exc_info:
            parse_entries(json.dumps(rows))
        assert exc_info.value.index == 2

    def test_extra_field_rejected(self):
        with pytest.raises(MalformedEntry) as exc_info:
            parse_entries([ROW, ROW + ["extra"]])
        assert exc_info.value.index == 1

    @pytest.mark.parametrize("position, value", [
        (0, 12345),
        (2, None),
        (3, ["list"]),
        (4, "1302894934"),
        (4, 1.5),
        (4, True),
        (5, 0),
        (6, "0"),
        (7, False),
    ])
    def test_wrong_type_rejected(self, position, value):
        bad = list(ROW)
        bad[position] = value
        with pytest.raises(MalformedEntry) as exc_info:
            parse_entries([ROW, bad])
        assert exc_info.value.index == 1

    def test_row_not_array(self):
        with pytest.raises(MalformedEntry) as exc_info:
            parse_entries([{"id": "x"}])
        assert exc_info.value.index == 0

    @pytest.mark.parametrize("raw", ["{}", '"text"', "not json"])
    def test_not_an_array(self, raw):
        with pytest.raises(MalformedDocument):
            parse_entries(raw)

    def test_malformed_entry_is_format_error(self):
        with pytest.raises(FormatError):
            parse_entries([[]])

    def test_fixture_index(self, fixture_vault):
        path = fixture_vault / "data" / "default" / "contents.js"
        raw = path.read_text(encoding="utf-8")
        entries = parse_entries(raw)
        assert len(entries) == len(json.loads(raw)) == 3
        assert [e.title for e in entries] == ["Gmail", "Wifi router", "Alarm code"]
        assert entries[2].entry_type == "securenotes.SecureNote"
