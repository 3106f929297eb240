"""Search filter used by the UI to narrow a display sequence."""

from __future__ import annotations

from typing import Iterable

from sheetsync.records.models import FIELD_NAMES, DisplayEntry, format_due_date


def matches(entry: DisplayEntry, term: str | None) -> bool:
    """Case-insensitive substring match over every field of a record.

    Separators always match so group boundaries survive filtering. The
    quantity and the formatted due date are matched as text.
    """
    if entry.is_separator:
        return True
    if not term or not term.strip():
        return True
    needle = term.lower()

    haystack = [str(getattr(entry, name)) for name in FIELD_NAMES]
    haystack.append(format_due_date(entry.due_date))
    return any(needle in value.lower() for value in haystack)


def filter_view(entries: Iterable[DisplayEntry], term: str | None) -> list[DisplayEntry]:
    return [entry for entry in entries if matches(entry, term)]


__all__ = ["matches", "filter_view"]
