"""
Ordering/grouping engine: derive the display sequence of each partition.

Active partition::

    [pinned records, in their current relative order]
    [records due d1 ...] Separator(d1)
    [records due d2 ...] Separator(d2)
    ...
    [records with no/unparseable date ...] Separator("No Date")

Finished partition: due date descending (most recently due first), unknown
dates last, no separators.

Both sorts are stable, so records sharing a due date keep the order of the
backing list (this is what a manual reorder changes). Running the engine on
its own output with separators stripped yields the same sequence.
"""

from __future__ import annotations

from itertools import groupby
from typing import Iterable

from sheetsync.records.lifecycle import is_pinned
from sheetsync.records.models import DisplayEntry, Record, Separator, strip_separators


def sort_by_due_date(records: Iterable[Record], *, descending: bool = False) -> list[Record]:
    """Stable sort on due date; unknown dates always go last."""
    records = list(records)
    dated = [r for r in records if r.due_date is not None]
    undated = [r for r in records if r.due_date is None]
    dated.sort(key=lambda r: r.due_date, reverse=descending)
    return dated + undated


def group_by_due_date(records: Iterable[Record]) -> list[tuple[Separator, list[Record]]]:
    """Consecutive records sharing a due-date key, with the separator closing each group."""
    groups = []
    for due, members in groupby(records, key=lambda r: r.due_date):
        members = list(members)
        groups.append((Separator(label=members[0].due_label, due_date=due), members))
    return groups


def build_active_view(entries: Iterable[DisplayEntry]) -> list[DisplayEntry]:
    """Display sequence for the Active partition."""
    records = strip_separators(entries)
    pinned = [r for r in records if is_pinned(r)]
    remainder = [r for r in records if not is_pinned(r)]

    view: list[DisplayEntry] = list(pinned)
    for separator, members in group_by_due_date(sort_by_due_date(remainder)):
        view.extend(members)
        view.append(separator)
    return view


def build_finished_view(entries: Iterable[DisplayEntry]) -> list[DisplayEntry]:
    """Display sequence for the Finished partition."""
    return list(sort_by_due_date(strip_separators(entries), descending=True))


__all__ = [
    "build_active_view",
    "build_finished_view",
    "group_by_due_date",
    "sort_by_due_date",
]
