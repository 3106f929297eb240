"""Tests for sheetsync.records.search."""

from sheetsync.records.models import Record, Separator
from sheetsync.records.search import filter_view, matches


class TestMatches:
    def test_empty_term_matches_everything(self):
        assert matches(Record(), "")
        assert matches(Record(), None)
        assert matches(Record(), "   ")

    def test_surrounding_spaces_are_part_of_the_term(self):
        record = Record(what_is_it="Pump", work_description="Rebuild pump seal")
        assert matches(record, "pump ")
        assert not matches(Record(what_is_it="Pump"), "pump ")

    def test_separator_always_matches(self):
        assert matches(Separator("05/01/2025"), "no such text")

    def test_case_insensitive_substring(self):
        record = Record(customer="Acme Pumps", work_description="Rebuild gearbox")
        assert matches(record, "acme")
        assert matches(record, "GEARBOX")
        assert not matches(record, "turbine")

    def test_formatted_due_date(self):
        record = Record(date_due_text="5/1/2025")
        assert matches(record, "05/01/2025")

    def test_quantity(self):
        assert matches(Record(qty=17), "17")
        assert not matches(Record(qty=17), "18")

    def test_every_text_field(self):
        record = Record(po="PO-9931", parts="seal kit", shaft="Domestic", last_user="bob")
        for term in ("po-9931", "seal", "domestic", "bob"):
            assert matches(record, term)


class TestFilterView:
    def test_keeps_separators(self):
        hit = Record(customer="Acme")
        miss = Record(customer="Other")
        sep = Separator("05/01/2025")
        assert filter_view([hit, miss, sep], "acme") == [hit, sep]
