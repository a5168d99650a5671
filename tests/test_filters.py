"""
Unit Tests for Record Filters

Tests search, status and date-range filtering and their AND composition.
"""

import itertools

import pytest

from volttrack.models import RecordStatus, TransformerRecord
from volttrack.query.filters import RecordFilter, clear, filter_records, has_active_filters


def make_record(record_id, serial, customer, project, due="", pbg_due="", done=None) -> TransformerRecord:
    return TransformerRecord(
        id=record_id,
        serial_number=serial,
        customer_name=customer,
        project=project,
        commissioning_due_date=due,
        commissioning_done_date=done,
        pbg_due_date=pbg_due,
        status=RecordStatus.COMMISSIONED if done else RecordStatus.DISPATCHED,
    )


@pytest.fixture
def records():
    return [
        make_record("1", "TR-2024-001", "PowerCorp Ind", "Substation Alpha", "2024-02-15", "2024-03-01", done="2024-02-10"),
        make_record("2", "TR-2024-002", "City Infra Ltd", "Metro Expansion", "2024-03-01", "2024-04-15"),
        make_record("3", "TR-2024-003", "Powergrid South", "Feeder 7", "2024-05-20", ""),
        make_record("4", "TR-2024-004", "Metro Rail Corp", "Depot", "", "2024-03-31"),
        make_record("5", "XF-9", "Acme", "N/A", "2024-01-01", "2024-01-10"),
    ]


def ids(records):
    return [r.id for r in records]


class TestSearch:
    """Tests for free-text search."""

    def test_case_insensitive_customer(self, records):
        result = filter_records(records, RecordFilter(search_text="power"))
        assert ids(result) == ["1", "3"]

    def test_matches_serial(self, records):
        result = filter_records(records, RecordFilter(search_text="xf-9"))
        assert ids(result) == ["5"]

    def test_matches_project(self, records):
        """Test a match on any of the three fields is enough."""
        result = filter_records(records, RecordFilter(search_text="METRO"))
        assert ids(result) == ["2", "4"]

    def test_no_match(self, records):
        assert filter_records(records, RecordFilter(search_text="nothing")) == []


class TestStatus:
    """Tests for status filtering on persisted status."""

    def test_all_is_unconstrained(self, records):
        assert filter_records(records, RecordFilter(status="All")) == records

    def test_exact_match(self, records):
        assert ids(filter_records(records, RecordFilter(status="Commissioned"))) == ["1"]
        assert ids(filter_records(records, RecordFilter(status="Dispatched"))) == ["2", "3", "4", "5"]

    def test_overdue_matches_nothing(self, records):
        """Test Overdue is never persisted, so an exact filter finds nothing."""
        assert filter_records(records, RecordFilter(status="Overdue")) == []


class TestDateRanges:
    """Tests for inclusive date-range filters."""

    def test_commissioning_range_inclusive(self, records):
        result = filter_records(records, RecordFilter(
            commissioning_due_from="2024-02-15",
            commissioning_due_to="2024-03-01",
        ))
        assert ids(result) == ["1", "2"]

    def test_open_ended_range(self, records):
        result = filter_records(records, RecordFilter(commissioning_due_from="2024-03-01"))
        assert ids(result) == ["2", "3"]

    def test_missing_date_excluded_from_range(self, records):
        """Test records without the date never match a non-empty range."""
        result = filter_records(records, RecordFilter(commissioning_due_to="2030-01-01"))
        assert "4" not in ids(result)

        result = filter_records(records, RecordFilter(pbg_due_from="2000-01-01"))
        assert "3" not in ids(result)

    def test_pbg_range(self, records):
        result = filter_records(records, RecordFilter(pbg_due_from="2024-03-01", pbg_due_to="2024-03-31"))
        assert ids(result) == ["1", "4"]


class TestComposition:
    """Tests for AND composition across filter dimensions."""

    def test_no_filters_returns_original_order(self, records):
        """Test an empty filter returns the collection unchanged."""
        assert filter_records(records, RecordFilter()) == records
        assert filter_records(records) == records

    def test_combined_filters(self, records):
        result = filter_records(records, RecordFilter(
            search_text="metro",
            status="Dispatched",
            pbg_due_to="2024-04-01",
        ))
        assert ids(result) == ["4"]

    def test_and_of_single_dimensions(self, records):
        """Test a record matches iff it matches every dimension on its own."""
        dimensions = [
            {"search_text": "power"},
            {"status": "Dispatched"},
            {"commissioning_due_from": "2024-02-01", "commissioning_due_to": "2024-06-01"},
            {"pbg_due_to": "2024-04-01"},
        ]
        for size in range(1, len(dimensions) + 1):
            for combo in itertools.combinations(dimensions, size):
                merged = {}
                for part in combo:
                    merged.update(part)
                expected = [
                    r for r in records
                    if all(filter_records([r], RecordFilter(**part)) for part in combo)
                ]
                assert filter_records(records, RecordFilter(**merged)) == expected


class TestActiveFilters:

    def test_has_active_filters(self):
        assert has_active_filters(RecordFilter()) is False
        assert has_active_filters(RecordFilter(search_text="x")) is False
        assert has_active_filters(RecordFilter(status="Dispatched")) is True
        assert has_active_filters(RecordFilter(pbg_due_to="2024-01-01")) is True

    def test_clear(self):
        assert clear() == RecordFilter()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
