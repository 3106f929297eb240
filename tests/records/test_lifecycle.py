"""Tests for sheetsync.records.lifecycle."""

import pytest

from sheetsync.records.lifecycle import (
    STATUS_TABLE,
    Status,
    Tier,
    classify,
    is_pinned,
    is_terminal,
    reclassify,
    split_by_partition,
)
from sheetsync.records.models import Partition, Record, Separator


class TestClassify:
    @pytest.mark.parametrize("status", ["Picked up", "PICKED UP", "  picked   up ", "Cancelled", "cancelled"])
    def test_terminal_statuses_are_finished(self, status):
        assert classify(status).partition is Partition.FINISHED
        assert is_terminal(status)

    @pytest.mark.parametrize("status", ["Quote", "Booked in", "Paint shop", "On hold", "", None, "Something new"])
    def test_everything_else_is_active(self, status):
        assert classify(status).partition is Partition.ACTIVE
        assert not is_terminal(status)

    def test_completed_is_pinned_and_active(self):
        rule = classify("Completed")
        assert rule.tier is Tier.PINNED
        assert rule.partition is Partition.ACTIVE

    def test_unknown_status_is_normal(self):
        assert classify("mystery").tier is Tier.NORMAL

    def test_every_status_has_a_rule(self):
        assert set(STATUS_TABLE) == set(Status)

    def test_status_parse(self):
        assert Status.parse("Booked In") is Status.BOOKED_IN
        assert Status.parse("nope") is None

    def test_is_pinned(self, make_record):
        assert is_pinned(make_record(status="completed"))
        assert not is_pinned(make_record(status="Quote"))


class TestSplitByPartition:
    def test_split_ignores_separators_and_keeps_order(self, make_record):
        a = make_record(status="Quote", customer="a")
        b = make_record(status="Picked up", customer="b")
        c = make_record(status="Assembly", customer="c")
        active, finished = split_by_partition([a, Separator("x"), b, c])
        assert active == [a, c]
        assert finished == [b]


class TestReclassify:
    def test_moves_both_ways(self, make_record):
        a = make_record(status="Quote", customer="a")
        b = make_record(status="Picked up", customer="b")
        c = make_record(status="Cancelled", customer="c")
        d = make_record(status="Assembly", customer="d")
        active, finished = [a, b], [c, d]

        moved = reclassify(active, finished)

        assert moved == 2
        assert active == [a, d]
        assert finished == [c, b]

    def test_status_edit_moves_exactly_once_with_fields_unchanged(self, sample_line):
        from sheetsync.records.codec import parse_line

        record = parse_line(sample_line)
        snapshot = record.values()
        active, finished = [record], []

        record.status = "Picked up"
        assert reclassify(active, finished) == 1
        assert reclassify(active, finished) == 0
        assert active == [] and finished == [record]
        assert record.values()[:6] == snapshot[:6]
        assert record.values()[7:] == snapshot[7:]

        record.status = "Booked in"
        assert reclassify(active, finished) == 1
        assert active == [record] and finished == []

    def test_in_place(self, make_record):
        active = [make_record(status="Cancelled")]
        finished: list[Record] = []
        original = active
        reclassify(active, finished)
        assert active is original
        assert len(finished) == 1

    def test_drops_separators(self, make_record):
        record = make_record(status="Quote")
        active = [record, Separator("No Date")]
        reclassify(active, [])
        assert active == [record]
