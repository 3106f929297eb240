"""
Record codec: one delimited text line <-> one ``Record``.

Parsing is tolerant and never raises:

- a quote toggles "inside literal" mode; inside a literal the delimiter is
  plain text and a doubled quote is one literal quote
- missing trailing fields default to empty text
- a line with exactly one extra field is a legacy spreadsheet export that
  carried an ID column first; that leading field is dropped
- quantity that is not an integer becomes 0
- a due date that is not ``dd/mm/yyyy`` is kept verbatim (it sorts as unknown)
- a line that contains ``;`` but no ``,`` is split on ``;`` (regional
  spreadsheet exports)

Formatting quotes a field only when it contains the delimiter, a quote, or a
line break, so ``parse_line(format_record(r)) == r`` for any field content.

Usage:
    from sheetsync.records.codec import RecordCodec

    codec = RecordCodec()
    record = codec.parse_line("A1,OE1,Cust,SN1,Mon,05/01/2025,Quote,2,...")
    line = codec.format_record(record)
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, Iterator

from sheetsync.records.models import COLUMN_COUNT, FIELD_NAMES, HEADERS, Record, parse_quantity


QUOTE = '"'


class RecordCodec:
    """Maps flat text lines to records and back for one delimiter."""

    def __init__(self, delimiter: str = ","):
        if len(delimiter) != 1 or delimiter in (QUOTE, "\n", "\r"):
            raise ValueError(f"Invalid delimiter: {delimiter!r}")
        self._delimiter = delimiter

    @property
    def delimiter(self) -> str:
        return self._delimiter

    @property
    def header(self) -> str:
        return self._delimiter.join(HEADERS)

    # -------------------------------------------------------------------------
    # PARSING
    # -------------------------------------------------------------------------

    def split_line(self, line: str) -> list[str]:
        """Split one logical line into raw field texts."""
        line = line.rstrip("\r\n")
        delimiter = self._sniff(line)

        fields: list[str] = []
        current: list[str] = []
        in_quotes = False
        i = 0
        while i < len(line):
            ch = line[i]
            if in_quotes:
                if ch == QUOTE:
                    if i + 1 < len(line) and line[i + 1] == QUOTE:
                        current.append(QUOTE)
                        i += 1
                    else:
                        in_quotes = False
                else:
                    current.append(ch)
            elif ch == QUOTE:
                in_quotes = True
            elif ch == delimiter:
                fields.append("".join(current))
                current = []
            else:
                current.append(ch)
            i += 1
        fields.append("".join(current))
        return fields

    def parse_line(self, line: str) -> Record:
        """Parse one line into a record. Never fails."""
        return self.record_from_fields(self.split_line(line))

    def record_from_fields(self, fields: list[str]) -> Record:
        if len(fields) == COLUMN_COUNT + 1:
            fields = fields[1:]
        fields = (list(fields) + [""] * COLUMN_COUNT)[:COLUMN_COUNT]

        values = dict(zip(FIELD_NAMES, fields))
        qty = parse_quantity(values.pop("qty"))
        return Record(qty=qty, **values)

    def iter_logical_lines(self, lines: Iterable[str]) -> Iterator[str]:
        """Rejoin physical lines that belong to one quoted multi-line field.

        ``lines`` must keep their line endings (as read with ``newline=""``)
        so a line break inside a quoted field is rebuilt exactly.

        A line only continues onto the next one when its open quote began a
        field and the joined row closes that quote within one row's worth of
        fields. Anything else (a stray inch mark, an unclosed quote) is
        parsed as a line of its own so it cannot swallow the rows after it.
        """
        pending = deque(lines)
        while pending:
            line = pending.popleft()
            if self._open_literal(line) == "field":
                joined = self._join_quoted(line, pending)
                if joined is not None:
                    yield joined.rstrip("\r\n")
                    continue
            yield line.rstrip("\r\n")

    def _join_quoted(self, first: str, pending: deque[str]) -> str | None:
        text = first
        for taken, line in enumerate(pending, start=1):
            text += line
            if self._open_literal(text) is None:
                if len(self.split_line(text)) > COLUMN_COUNT + 1:
                    return None
                for _ in range(taken):
                    pending.popleft()
                return text
        return None

    def _open_literal(self, text: str) -> str | None:
        """How ``text`` ends: None when no literal is open, ``"field"`` when the
        open literal started a field, ``"stray"`` when it started mid-field."""
        delimiter = self._sniff(text)
        in_quotes = False
        opened_at_start = False
        at_field_start = True
        i = 0
        while i < len(text):
            ch = text[i]
            if in_quotes:
                if ch == QUOTE:
                    if i + 1 < len(text) and text[i + 1] == QUOTE:
                        i += 1
                    else:
                        in_quotes = False
            elif ch == QUOTE:
                in_quotes = True
                opened_at_start = at_field_start
            at_field_start = not in_quotes and ch == delimiter
            i += 1
        if not in_quotes:
            return None
        return "field" if opened_at_start else "stray"

    def parse_lines(self, lines: Iterable[str]) -> list[Record]:
        """Parse a whole file body. A leading header row is skipped."""
        records = []
        first = True
        for line in self.iter_logical_lines(lines):
            if not line.strip():
                continue
            fields = self.split_line(line)
            if first and self.is_header(fields):
                first = False
                continue
            first = False
            records.append(self.record_from_fields(fields))
        return records

    @staticmethod
    def is_header(fields: list[str]) -> bool:
        return any(value.strip().upper() == "STATUS" for value in fields)

    def _sniff(self, line: str) -> str:
        if self._delimiter == "," and ";" in line and "," not in line:
            return ";"
        return self._delimiter

    # -------------------------------------------------------------------------
    # FORMATTING
    # -------------------------------------------------------------------------

    def escape(self, value: str) -> str:
        if any(ch in value for ch in (self._delimiter, QUOTE, "\n", "\r")):
            return QUOTE + value.replace(QUOTE, QUOTE * 2) + QUOTE
        return value

    def format_record(self, record: Record) -> str:
        """Serialize a record in canonical column order."""
        return self._delimiter.join(self.escape(value) for value in record.values())

    def format_document(self, records: Iterable[Record]) -> list[str]:
        """Header line followed by one line per record (separators skipped)."""
        lines = [self.header]
        lines.extend(self.format_record(r) for r in records if not r.is_separator)
        return lines


_default_codec = RecordCodec()


def parse_line(line: str) -> Record:
    """Parse with the default comma codec."""
    return _default_codec.parse_line(line)


def format_record(record: Record) -> str:
    """Format with the default comma codec."""
    return _default_codec.format_record(record)


__all__ = ["RecordCodec", "parse_line", "format_record"]
