"""
sheetsync: shared-file record synchronization and ordering for a multi-seat
worklist.

Several seats edit the same branch worklist, stored as two delimited text
files on a network share. sheetsync parses and formats the records, reads
and atomically rewrites the files under contention, watches them for
changes made by other seats, keeps records in the right partition by
status, and derives the grouped display order the UI renders.
"""

from sheetsync.autosave import AutosaveScheduler
from sheetsync.core.session import Session
from sheetsync.core.settings import SheetSyncSettings, get_settings
from sheetsync.dataset import BranchDataset, load_branch
from sheetsync.records.models import Partition, Record, Separator

__version__ = "0.1.0"

__all__ = [
    "AutosaveScheduler",
    "BranchDataset",
    "Partition",
    "Record",
    "Separator",
    "Session",
    "SheetSyncSettings",
    "get_settings",
    "load_branch",
]
