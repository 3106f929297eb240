"""
Lifecycle classifier: status text -> (display tier, partition).

Status is free text in the files, but the shop uses a closed set of values.
``STATUS_TABLE`` maps each known status to its rule; anything not in the
table is an ordinary Active record. Adding a status is one table row.

Classification is a total function of the current status: there is no
transition log and no invalid transition. Editing a Finished record's status
back to a non-terminal value puts it back in Active on the next pass.

Examples:
    >>> classify("Picked up").partition
    <Partition.FINISHED: 'finished'>
    >>> classify("  QUOTE ").partition
    <Partition.ACTIVE: 'active'>
    >>> classify("Completed").tier
    <Tier.PINNED: 'pinned'>
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from sheetsync.core.logging import get_logger
from sheetsync.records.models import Partition, Record


logger = get_logger(__name__)


class Status(str, Enum):
    """Statuses the workshop uses; values are the normalized (lower-case) text."""

    QUOTE = "quote"
    QUOTING = "quoting"
    BOOKED_IN = "booked in"
    PICKING = "picking"
    ASSEMBLY = "assembly"
    BALANCING = "balancing"
    DRIVE_SHOP = "drive shop"
    PAINT_SHOP = "paint shop"
    ON_HOLD = "on hold"
    COMPLETED = "completed"
    PICKED_UP = "picked up"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, text: str | None) -> Status | None:
        """Known status for ``text`` (case/whitespace-insensitive), else None."""
        try:
            return cls(normalize_status(text))
        except ValueError:
            return None


class Tier(str, Enum):
    PINNED = "pinned"
    NORMAL = "normal"


@dataclass(frozen=True)
class StatusRule:
    tier: Tier
    partition: Partition


_NORMAL = StatusRule(Tier.NORMAL, Partition.ACTIVE)

STATUS_TABLE: dict[Status, StatusRule] = {
    Status.QUOTE: _NORMAL,
    Status.QUOTING: _NORMAL,
    Status.BOOKED_IN: _NORMAL,
    Status.PICKING: _NORMAL,
    Status.ASSEMBLY: _NORMAL,
    Status.BALANCING: _NORMAL,
    Status.DRIVE_SHOP: _NORMAL,
    Status.PAINT_SHOP: _NORMAL,
    Status.ON_HOLD: _NORMAL,
    Status.COMPLETED: StatusRule(Tier.PINNED, Partition.ACTIVE),
    Status.PICKED_UP: StatusRule(Tier.NORMAL, Partition.FINISHED),
    Status.CANCELLED: StatusRule(Tier.NORMAL, Partition.FINISHED),
}


def normalize_status(text: str | None) -> str:
    return " ".join((text or "").split()).lower()


def classify(status: str | None) -> StatusRule:
    """Rule for a status text; unknown or empty statuses are normal Active."""
    known = Status.parse(status)
    if known is None:
        return _NORMAL
    return STATUS_TABLE.get(known, _NORMAL)


def partition_of(record: Record) -> Partition:
    return classify(record.status).partition


def is_terminal(status: str | None) -> bool:
    return classify(status).partition is Partition.FINISHED


def is_pinned(record: Record) -> bool:
    return classify(record.status).tier is Tier.PINNED


def split_by_partition(records: Iterable[Record]) -> tuple[list[Record], list[Record]]:
    """Route records to (active, finished) by status, keeping relative order."""
    active: list[Record] = []
    finished: list[Record] = []
    for record in records:
        if record.is_separator:
            continue
        if partition_of(record) is Partition.FINISHED:
            finished.append(record)
        else:
            active.append(record)
    return active, finished


def reclassify(active: list[Record], finished: list[Record]) -> int:
    """Move misplaced records between the two lists in place.

    Records leaving a list are appended to the other one, so a record that
    just became terminal lands at the end of Finished. Separators are dropped.

    Returns:
        Number of records that changed partition.
    """
    stay_active, to_finished = split_by_partition(active)
    to_active, stay_finished = split_by_partition(finished)

    moved = len(to_finished) + len(to_active)
    active[:] = stay_active + to_active
    finished[:] = stay_finished + to_finished
    if moved:
        logger.debug(
            "records_reclassified",
            to_finished=len(to_finished),
            to_active=len(to_active),
        )
    return moved


__all__ = [
    "STATUS_TABLE",
    "Status",
    "StatusRule",
    "Tier",
    "classify",
    "is_pinned",
    "is_terminal",
    "normalize_status",
    "partition_of",
    "reclassify",
    "split_by_partition",
]
