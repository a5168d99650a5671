"""
Dashboard Aggregations

Read-only projections over the record collection for the dashboard: KPI
counts, status split, grouped counts and PBG sums. Everything is recomputed
from the records passed in; nothing is cached.
"""

from collections import Counter, OrderedDict
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional

from volttrack.compute.service import is_overdue
from volttrack.models import RecordStatus, TransformerRecord


def _as_list(records: Iterable[TransformerRecord]) -> List[TransformerRecord]:
    return records if isinstance(records, list) else list(records)


def summary_counts(records: Iterable[TransformerRecord], today: Optional[date] = None) -> Dict[str, Any]:
    """
    KPI figures for the dashboard header.

    Returns:
        Dictionary with total, commissioned, overdue and total_pbg
    """
    records = _as_list(records)
    today = today or date.today()
    return {
        "total": len(records),
        "commissioned": sum(1 for r in records if r.status == RecordStatus.COMMISSIONED),
        "overdue": sum(1 for r in records if is_overdue(r, today)),
        "total_pbg": sum(r.pbg_amount or 0 for r in records),
    }


def status_breakdown(records: Iterable[TransformerRecord], today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Commissioned / Pending / Overdue split for the status chart."""
    stats = summary_counts(records, today)
    return [
        {"name": "Commissioned", "value": stats["commissioned"]},
        {"name": "Pending", "value": stats["total"] - stats["commissioned"] - stats["overdue"]},
        {"name": "Overdue", "value": stats["overdue"]},
    ]


def rating_label(rating_kva: float) -> str:
    value = int(rating_kva) if float(rating_kva).is_integer() else rating_kva
    return f"{value} KVA"


def count_by_rating(records: Iterable[TransformerRecord]) -> List[Dict[str, Any]]:
    """Unit counts per rating, in first-seen order."""
    counts = Counter(rating_label(r.rating_kva) for r in records)
    return [{"name": name, "count": count} for name, count in counts.items()]


def count_by_state(records: Iterable[TransformerRecord]) -> List[Dict[str, Any]]:
    """Unit counts per state, largest first. Empty state counts as Unknown."""
    counts = Counter(r.state or "Unknown" for r in records)
    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [{"name": name, "count": count} for name, count in ordered]


def count_by_warranty_year(records: Iterable[TransformerRecord]) -> List[Dict[str, Any]]:
    """Dispatch warranty expiries per year, ascending."""
    counts = Counter(
        r.warranty_date_dispatch.split("-")[0]
        for r in records
        if r.warranty_date_dispatch
    )
    return [{"name": year, "count": counts[year]} for year in sorted(counts)]


def top_customers(records: Iterable[TransformerRecord], limit: int = 5) -> List[Dict[str, Any]]:
    """Customers with the most units; ties keep first-seen order."""
    counts = Counter(r.customer_name for r in records)
    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [{"name": name, "value": count} for name, count in ordered[:limit]]


def pbg_by(
    records: Iterable[TransformerRecord],
    key: Callable[[TransformerRecord], Any]
) -> "OrderedDict[Any, float]":
    """PBG amount summed per partition key, in first-seen order."""
    sums: "OrderedDict[Any, float]" = OrderedDict()
    for record in records:
        k = key(record)
        sums[k] = sums.get(k, 0) + (record.pbg_amount or 0)
    return sums


def monthly_pbg(records: Iterable[TransformerRecord], limit: int = 10) -> List[Dict[str, Any]]:
    """PBG amount due per YYYY-MM, ascending, first `limit` periods."""
    sums = pbg_by((r for r in records if r.pbg_due_date), key=lambda r: r.pbg_due_date[:7])
    return [{"name": period, "value": sums[period]} for period in sorted(sums)[:limit]]


def build_dashboard(records: Iterable[TransformerRecord], today: Optional[date] = None) -> Dict[str, Any]:
    """Every dashboard projection in one payload."""
    records = _as_list(records)
    today = today or date.today()
    return {
        "as_of": today.isoformat(),
        "summary": summary_counts(records, today),
        "status": status_breakdown(records, today),
        "by_rating": count_by_rating(records),
        "by_state": count_by_state(records),
        "by_warranty_year": count_by_warranty_year(records),
        "top_customers": top_customers(records),
        "monthly_pbg": monthly_pbg(records),
    }
