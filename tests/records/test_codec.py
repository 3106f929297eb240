"""Tests for sheetsync.records.codec.

Covers:
- Tolerant parsing (short lines, legacy ID column, bad quantity/date)
- Quote handling (delimiters, doubled quotes, multi-line literals)
- Deterministic formatting and round trips
- Header detection and semicolon exports
"""

from datetime import date

import pytest

from sheetsync.records.codec import RecordCodec, format_record, parse_line
from sheetsync.records.models import HEADERS, Record, Separator


class TestParseLine:
    def test_sample_line(self, sample_line):
        record = parse_line(sample_line)
        assert record.qty == 2
        assert record.due_date == date(2025, 1, 5)
        assert record.status == "Quote"
        assert record.retail == "A1"
        assert record.customer == "Cust"
        assert record.work_description == "Rebuild"
        assert record.last_user == "alice"

    def test_short_line_defaults_to_empty(self):
        record = parse_line("A1,OE1")
        assert record.retail == "A1"
        assert record.oe == "OE1"
        assert record.customer == ""
        assert record.last_user == ""
        assert record.qty == 0

    def test_empty_line(self):
        assert parse_line("") == Record()

    def test_legacy_id_column_dropped(self, sample_line):
        assert parse_line("ID7," + sample_line) == parse_line(sample_line)

    def test_bad_quantity_is_zero(self):
        record = parse_line("A1,OE1,Cust,SN1,Mon,05/01/2025,Quote,two")
        assert record.qty == 0

    def test_unparseable_date_kept_as_text(self):
        record = parse_line("A1,OE1,Cust,SN1,Mon,soon,Quote,1")
        assert record.date_due_text == "soon"
        assert record.due_date is None
        assert format_record(record).split(",")[5] == "soon"

    def test_quoted_delimiter(self):
        record = parse_line('A1,OE1,"Acme, Inc.",SN1')
        assert record.customer == "Acme, Inc."
        assert record.serial == "SN1"

    def test_doubled_quote_is_literal_quote(self):
        record = parse_line('A1,OE1,"say ""hi""",SN1')
        assert record.customer == 'say "hi"'

    def test_trailing_line_ending_ignored(self, sample_line):
        assert parse_line(sample_line + "\r\n") == parse_line(sample_line)

    def test_semicolon_export(self):
        record = parse_line("A1;OE1;Cust;SN1;Mon;05/01/2025;Quote;3")
        assert record.customer == "Cust"
        assert record.qty == 3

    def test_semicolon_inside_comma_line_is_text(self):
        record = parse_line("A1,OE1,Cust; Ltd,SN1")
        assert record.customer == "Cust; Ltd"


class TestFormatRecord:
    def test_acme_inc(self):
        line = format_record(Record(customer="Acme, Inc."))
        assert '"Acme, Inc."' in line
        assert parse_line(line).customer == "Acme, Inc."

    def test_plain_fields_not_quoted(self, sample_line):
        assert format_record(parse_line(sample_line)) == sample_line

    def test_column_order(self):
        record = Record(retail="R", last_user="bob", qty=4)
        fields = format_record(record).split(",")
        assert len(fields) == len(HEADERS)
        assert fields[0] == "R"
        assert fields[7] == "4"
        assert fields[14] == "bob"

    @pytest.mark.parametrize(
        "value",
        [
            "Acme, Inc.",
            'He said "hi"',
            '"quoted", and, commas',
            '""',
            "two\nlines",
            "trailing comma,",
        ],
    )
    def test_round_trip(self, value):
        record = Record(customer=value, parts=value, last_user=value, qty=5)
        assert parse_line(format_record(record)) == record

    def test_record_id_not_serialized(self):
        record = Record(customer="x", record_id="abc")
        assert "abc" not in format_record(record)


class TestDocuments:
    def test_format_document_has_header_and_skips_separators(self, codec):
        records = [Record(customer="a"), Separator("05/01/2025"), Record(customer="b")]
        lines = codec.format_document(records)
        assert lines[0] == ",".join(HEADERS)
        assert len(lines) == 3

    def test_canonical_header(self, codec):
        assert codec.header == (
            "RETAIL,OE,CUSTOMER,SERIAL,DAY DUE,DATE DUE,STATUS,QTY,WHAT IS IT,PO,"
            "WHAT ARE WE DOING,PARTS,SHAFT,PRIORITY,LAST USER"
        )

    def test_parse_lines_skips_header_and_blanks(self, codec, sample_line):
        lines = [codec.header + "\r\n", "\r\n", sample_line + "\r\n", "   \n"]
        records = codec.parse_lines(lines)
        assert records == [parse_line(sample_line)]

    def test_first_row_without_status_is_data(self, codec, sample_line):
        records = codec.parse_lines([sample_line + "\n", sample_line + "\n"])
        assert len(records) == 2

    def test_multi_line_field_rejoined(self, codec):
        lines = ['A1,OE1,"line one\n', 'line two",SN1\n', "A2,OE2,Other,SN2\n"]
        records = codec.parse_lines(lines)
        assert len(records) == 2
        assert records[0].customer == "line one\nline two"
        assert records[0].serial == "SN1"
        assert records[1].retail == "A2"

    def test_inch_mark_does_not_swallow_following_rows(self, codec):
        lines = [
            codec.header + "\n",
            'N,N,Bob,SN1,Mon,05/01/2025,Quote,1,12" shaft,PO1,Fit,,Domestic,N,bob\n',
            "N,N,Carol,SN2,Tue,06/01/2025,Quote,1,Pump,PO2,Fit,,Domestic,N,bob\n",
            "N,N,Dave,SN3,Wed,07/01/2025,Booked in,2,Fan,PO3,Fit,,Domestic,N,bob\n",
        ]
        records = codec.parse_lines(lines)
        assert [r.customer for r in records] == ["Bob", "Carol", "Dave"]
        assert records[2].qty == 2
        assert records[2].status == "Booked in"

    def test_unclosed_quoted_field_stands_alone(self, codec):
        lines = [
            'N,N,"Bob,SN1,Mon,05/01/2025,Quote,1,Pump,PO1,Fit,,Domestic,N,bob\n',
            "N,N,Carol,SN2,Tue,06/01/2025,Quote,1,Pump,PO2,Fit,,Domestic,N,bob\n",
            "N,N,Dave,SN3,Wed,07/01/2025,Quote,1,Fan,PO3,Fit,,Domestic,N,bob\n",
        ]
        records = codec.parse_lines(lines)
        assert [r.customer for r in records][1:] == ["Carol", "Dave"]
        assert len(records) == 3

    def test_quote_closing_too_many_fields_later_is_not_joined(self, codec):
        lines = [
            'N,N,"Bob,SN1,Mon,05/01/2025,Quote,1,Pump,PO1,Fit,,Domestic,N,bob\n',
            'N,N,"Smith, J",SN2,Tue,06/01/2025,Quote,1,Pump,PO2,Fit,,Domestic,N,bob\n',
        ]
        records = codec.parse_lines(lines)
        assert len(records) == 2
        assert records[1].customer == "Smith, J"

    def test_document_round_trip(self, codec):
        records = [Record(customer="Acme, Inc.", work_description="fit\nand test", qty=2), Record(retail="Y")]
        text = "".join(line + "\n" for line in codec.format_document(records))
        assert codec.parse_lines(text.splitlines(keepends=True)) == records


class TestDelimiters:
    def test_tab_codec_does_not_quote_commas(self):
        codec = RecordCodec("\t")
        line = codec.format_record(Record(customer="Acme, Inc."))
        assert '"' not in line
        assert codec.parse_line(line).customer == "Acme, Inc."

    @pytest.mark.parametrize("delimiter", ['"', "\n", ",,", ""])
    def test_invalid_delimiter(self, delimiter):
        with pytest.raises(ValueError):
            RecordCodec(delimiter)
