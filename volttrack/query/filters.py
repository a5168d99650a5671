"""
Record Filters

Filtering for the records list: free-text search, status, and two inclusive
date ranges, combined with AND. Output keeps the input order.

Date ranges compare zero-padded YYYY-MM-DD strings lexicographically, which
orders them the same as the calendar.
"""

from typing import Iterable, List, Optional

from pydantic import BaseModel

from volttrack.models import TransformerRecord


ALL_STATUSES = "All"


class RecordFilter(BaseModel):
    """Active list filters. Empty fields impose no constraint."""
    search_text: str = ""
    status: str = ALL_STATUSES
    commissioning_due_from: str = ""
    commissioning_due_to: str = ""
    pbg_due_from: str = ""
    pbg_due_to: str = ""


def has_active_filters(record_filter: RecordFilter) -> bool:
    """Whether anything beyond the search box is constraining the list."""
    return bool(
        (record_filter.status and record_filter.status != ALL_STATUSES)
        or record_filter.commissioning_due_from
        or record_filter.commissioning_due_to
        or record_filter.pbg_due_from
        or record_filter.pbg_due_to
    )


def clear() -> RecordFilter:
    return RecordFilter()


def matches_search(record: TransformerRecord, search_text: str) -> bool:
    if not search_text:
        return True
    needle = search_text.lower()
    return (
        needle in record.serial_number.lower()
        or needle in record.customer_name.lower()
        or needle in record.project.lower()
    )


def matches_status(record: TransformerRecord, status: str) -> bool:
    if not status or status == ALL_STATUSES:
        return True
    return record.status.value == status


def in_range(value: Optional[str], start: str, end: str) -> bool:
    """Inclusive range check; a missing value never matches a non-empty range."""
    if not start and not end:
        return True
    if not value:
        return False
    if start and value < start:
        return False
    if end and value > end:
        return False
    return True


def filter_records(
    records: Iterable[TransformerRecord],
    record_filter: Optional[RecordFilter] = None
) -> List[TransformerRecord]:
    """
    Return the records matching every active filter, in input order.

    Args:
        records: Ordered record collection
        record_filter: Filter to apply (None returns everything)

    Returns:
        Matching records
    """
    f = record_filter or RecordFilter()
    return [
        record for record in records
        if matches_search(record, f.search_text)
        and matches_status(record, f.status)
        and in_range(record.commissioning_due_date, f.commissioning_due_from, f.commissioning_due_to)
        and in_range(record.pbg_due_date, f.pbg_due_from, f.pbg_due_to)
    ]
