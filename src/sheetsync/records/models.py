"""
Worklist data model.

A ``Record`` is one line of a branch file. A ``Separator`` is a display-only
marker the ordering engine places after each due-date group; it is never
stored in a partition and never written to disk.

Column order on disk is fixed (see ``COLUMNS``). The due date is kept as the
text the user typed so that a value that does not parse as ``dd/mm/yyyy``
survives a save unchanged; ``Record.due_date`` is the parsed view of it and
is ``None`` when the text is empty or unparseable.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import ClassVar, Union


DATE_FORMAT = "%d/%m/%Y"
NO_DATE_LABEL = "No Date"


class Partition(str, Enum):
    """The two buckets a record can live in."""

    ACTIVE = "active"
    FINISHED = "finished"


# (attribute, header) in on-disk order
COLUMNS: tuple[tuple[str, str], ...] = (
    ("retail", "RETAIL"),
    ("oe", "OE"),
    ("customer", "CUSTOMER"),
    ("serial", "SERIAL"),
    ("day_due", "DAY DUE"),
    ("date_due_text", "DATE DUE"),
    ("status", "STATUS"),
    ("qty", "QTY"),
    ("what_is_it", "WHAT IS IT"),
    ("po", "PO"),
    ("work_description", "WHAT ARE WE DOING"),
    ("parts", "PARTS"),
    ("shaft", "SHAFT"),
    ("priority", "PRIORITY"),
    ("last_user", "LAST USER"),
)

FIELD_NAMES: tuple[str, ...] = tuple(name for name, _ in COLUMNS)
HEADERS: tuple[str, ...] = tuple(header for _, header in COLUMNS)
COLUMN_COUNT = len(COLUMNS)

_FIELD_ALIASES = {
    "date_due": "date_due_text",
    "due_date": "date_due_text",
    "serial_number": "serial",
    "what_are_we_doing": "work_description",
    "description": "work_description",
    "shaft_type": "shaft",
    "quantity": "qty",
}


def parse_due_date(text: str) -> date | None:
    """Parse ``dd/mm/yyyy``; anything else is an unknown date."""
    text = text.strip()
    if not text:
        return None
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        return None


def format_due_date(value: date | None) -> str:
    return value.strftime(DATE_FORMAT) if value is not None else ""


def resolve_field(name: str) -> str:
    """Map an attribute name, header name or alias to a ``Record`` attribute.

    Raises:
        KeyError: the name is not a record column
    """
    key = name.strip().lower().replace(" ", "_").replace("-", "_")
    key = _FIELD_ALIASES.get(key, key)
    if key in FIELD_NAMES:
        return key
    raise KeyError(name)


@dataclass
class Record:
    """One worklist line item."""

    is_separator: ClassVar[bool] = False

    retail: str = ""
    oe: str = ""
    customer: str = ""
    serial: str = ""
    day_due: str = ""
    date_due_text: str = ""
    status: str = ""
    qty: int = 0
    what_is_it: str = ""
    po: str = ""
    work_description: str = ""
    parts: str = ""
    shaft: str = ""
    priority: str = ""
    last_user: str = ""

    # Opaque identity; not a column and not part of equality.
    record_id: str = field(default="", compare=False)

    @property
    def due_date(self) -> date | None:
        return parse_due_date(self.date_due_text)

    @due_date.setter
    def due_date(self, value: date | None) -> None:
        self.date_due_text = format_due_date(value)

    @property
    def due_label(self) -> str:
        """Group label for this record's due date."""
        due = self.due_date
        return format_due_date(due) if due is not None else NO_DATE_LABEL

    def set_field(self, name: str, value: object) -> None:
        """Assign one column from user input (quantity tolerant like the codec)."""
        attr = resolve_field(name)
        if attr == "qty":
            self.qty = parse_quantity(value)
        else:
            setattr(self, attr, "" if value is None else str(value))

    def values(self) -> list[str]:
        """Column values as text, in on-disk order."""
        return [str(getattr(self, name)) for name in FIELD_NAMES]

    def copy(self, **changes: object) -> Record:
        """Field-for-field copy with a blank identity."""
        changes.setdefault("record_id", "")
        return dataclasses.replace(self, **changes)

    @classmethod
    def blank(cls, username: str, today: date | None = None) -> Record:
        """A freshly added record with the shop's defaults."""
        today = today or date.today()
        return cls(
            retail="N",
            oe="N",
            day_due=today.strftime("%A"),
            date_due_text=format_due_date(today),
            status="Quote",
            qty=1,
            shaft="Domestic",
            priority="N",
            last_user=username,
        )


def parse_quantity(value: object) -> int:
    """Integer quantity, 0 when missing or not a number."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class Separator:
    """Display-only marker closing a due-date group."""

    is_separator: ClassVar[bool] = True

    label: str
    due_date: date | None = None


DisplayEntry = Union[Record, Separator]


def strip_separators(entries) -> list[Record]:
    """Records only, in their current order."""
    return [entry for entry in entries if not entry.is_separator]


__all__ = [
    "COLUMNS",
    "COLUMN_COUNT",
    "DATE_FORMAT",
    "FIELD_NAMES",
    "HEADERS",
    "NO_DATE_LABEL",
    "DisplayEntry",
    "Partition",
    "Record",
    "Separator",
    "format_due_date",
    "parse_due_date",
    "parse_quantity",
    "resolve_field",
    "strip_separators",
]
