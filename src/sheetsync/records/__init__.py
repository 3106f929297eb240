"""
Worklist records: data model, codec, lifecycle classification, ordering
and search. Everything here is pure and free of IO.
"""

from sheetsync.records.codec import RecordCodec, format_record, parse_line
from sheetsync.records.lifecycle import Status, Tier, classify, reclassify
from sheetsync.records.models import (
    COLUMNS,
    DisplayEntry,
    Partition,
    Record,
    Separator,
    strip_separators,
)
from sheetsync.records.ordering import build_active_view, build_finished_view
from sheetsync.records.search import filter_view, matches

__all__ = [
    "RecordCodec",
    "format_record",
    "parse_line",
    "Status",
    "Tier",
    "classify",
    "reclassify",
    "COLUMNS",
    "DisplayEntry",
    "Partition",
    "Record",
    "Separator",
    "strip_separators",
    "build_active_view",
    "build_finished_view",
    "filter_view",
    "matches",
]
