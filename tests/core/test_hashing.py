"""Tests for sheetsync.core.hashing module."""

from sheetsync.core.hashing import compute_hash, compute_record_id


class TestComputeHash:
    def test_deterministic(self):
        assert compute_hash("a", "b") == compute_hash("a", "b")

    def test_order_matters(self):
        assert compute_hash("a", "b") != compute_hash("b", "a")

    def test_length(self):
        assert len(compute_hash("x")) == 32
        assert len(compute_hash("x", length=16)) == 16

    def test_non_string_values(self):
        assert compute_hash(1, None) == compute_hash("1", "None")


class TestComputeRecordId:
    def test_occurrence_distinguishes_duplicates(self):
        line = "A1,OE1,Cust"
        assert compute_record_id("ho", "ho.csv", line, 0) != compute_record_id("ho", "ho.csv", line, 1)

    def test_source_distinguishes_files(self):
        line = "A1,OE1,Cust"
        assert compute_record_id("ho", "ho.csv", line, 0) != compute_record_id("ho", "hofinished.csv", line, 0)

    def test_branch_distinguishes(self):
        assert compute_record_id("a", "f", "l", 0) != compute_record_id("b", "f", "l", 0)
