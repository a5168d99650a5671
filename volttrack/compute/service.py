"""
Compute Service

Deterministic derivation service for transformer dispatch records:
- Warranty expiry dates (from dispatch and from commissioning)
- Persisted status (Dispatched / Commissioned)
- Display status, which adds the transient Overdue state

All calculations are deterministic: same input → same output.
Month arithmetic uses relativedelta, so the day of month is clamped to the
last valid day of the target month (2024-01-31 + 1 month = 2024-02-29).
"""

import json
import logging
from datetime import datetime, date
from typing import Any, Dict, Optional

from dateutil.relativedelta import relativedelta

from volttrack.models import RecordStatus


logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_WARRANTY_MONTHS = 12


class MalformedDateError(ValueError):
    """Raised when a date string is not a YYYY-MM-DD calendar date."""
    pass


def parse_iso_date(value: Any) -> date:
    """
    Parse a YYYY-MM-DD string into a date.

    Args:
        value: Date string (a date instance is passed through)

    Returns:
        Parsed date

    Raises:
        MalformedDateError: If value is empty or not a calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        raise MalformedDateError(f"Not a date: {value!r}")
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError as e:
        raise MalformedDateError(f"Invalid date format: {value}") from e


def resolve_months(value: Any, default: int = DEFAULT_WARRANTY_MONTHS) -> int:
    """Coerce a month count to a positive int, falling back to default."""
    try:
        months = int(float(value))
    except (TypeError, ValueError):
        return default
    return months if months > 0 else default


def add_months(base_date: Any, months: int) -> str:
    """
    Advance base_date by whole months.

    Args:
        base_date: Start date (YYYY-MM-DD)
        months: Number of months to add

    Returns:
        Zero-padded ISO date string, or "" if base_date is unusable
    """
    try:
        base = parse_iso_date(base_date)
    except MalformedDateError as e:
        logger.debug(f"Skipping month offset - reason={e}")
        return ""
    return (base + relativedelta(months=int(months))).isoformat()


def compute_warranty_dispatch(dispatch_date: Any, warranty_months_dispatch: Any = None) -> str:
    """Warranty expiry counted from the dispatch date."""
    months = resolve_months(warranty_months_dispatch)
    return add_months(dispatch_date, months)


def compute_warranty_comm(
    commissioning_done_date: Any,
    commissioning_due_date: Any,
    warranty_months_comm: Any = None
) -> str:
    """
    Warranty expiry counted from commissioning.

    The done date wins over the due date. With neither present there is no
    warranty yet and the result is "".
    """
    base = commissioning_done_date or commissioning_due_date
    if not base:
        return ""
    return add_months(base, resolve_months(warranty_months_comm))


def derive_status(commissioning_done_date: Any) -> RecordStatus:
    """Persisted status: only Commissioned or Dispatched."""
    if commissioning_done_date:
        return RecordStatus.COMMISSIONED
    return RecordStatus.DISPATCHED


def _field(record: Any, name: str, alias: str) -> Any:
    if isinstance(record, dict):
        return record.get(alias, record.get(name))
    return getattr(record, name, None)


def is_overdue(record: Any, today: Optional[date] = None) -> bool:
    """
    Check whether commissioning is overdue.

    True when the record is not commissioned and its commissioning due date
    is strictly before today. Unparseable due dates are never overdue.
    """
    status = _field(record, "status", "status")
    if status == RecordStatus.COMMISSIONED or status == RecordStatus.COMMISSIONED.value:
        return False
    try:
        due = parse_iso_date(_field(record, "commissioning_due_date", "commissioningDueDate"))
    except MalformedDateError:
        return False
    return due < (today or date.today())


def display_status(record: Any, today: Optional[date] = None) -> RecordStatus:
    """Three-state status shown on the dashboard and in listings."""
    if is_overdue(record, today):
        return RecordStatus.OVERDUE
    status = _field(record, "status", "status")
    if status == RecordStatus.COMMISSIONED or status == RecordStatus.COMMISSIONED.value:
        return RecordStatus.COMMISSIONED
    return RecordStatus.DISPATCHED


def days_until(date_str: Any, today: Optional[date] = None) -> Optional[int]:
    """Whole days from today to date_str (negative if past), None if unusable."""
    try:
        target = parse_iso_date(date_str)
    except MalformedDateError:
        return None
    return (target - (today or date.today())).days


class ComputeService:
    """
    Service class for deterministic record derivations.

    Routes a dict of parameters to the matching derivation and returns a
    JSON envelope, the same shape for every calculation.
    """

    def run(self, call: Dict[str, Any]) -> str:
        """
        Execute a derivation based on call parameters.

        Args:
            call: Dictionary containing derivation parameters (camelCase keys)

        Returns:
            JSON string with derivation results
        """
        if "dispatchDate" in call:
            months = resolve_months(call.get("warrantyMonthsDispatch"))
            expiry = compute_warranty_dispatch(call.get("dispatchDate"), months)
            result = self._envelope(expiry, call.get("dispatchDate"), {
                "warranty_date_dispatch": expiry,
                "warranty_months_dispatch": months,
            })
        elif "commissioningDueDate" in call or "commissioningDoneDate" in call:
            months = resolve_months(call.get("warrantyMonthsComm"))
            base = call.get("commissioningDoneDate") or call.get("commissioningDueDate")
            expiry = compute_warranty_comm(
                call.get("commissioningDoneDate"),
                call.get("commissioningDueDate"),
                months
            )
            result = self._envelope(expiry, base, {
                "warranty_date_comm": expiry,
                "warranty_months_comm": months,
                "base": "done" if call.get("commissioningDoneDate") else "due",
                "status": derive_status(call.get("commissioningDoneDate")).value,
            })
        else:
            result = {
                "status": "error",
                "error_code": "UNKNOWN_CALCULATION",
                "message": "Could not determine calculation type from parameters"
            }

        return json.dumps(result, indent=2)

    @staticmethod
    def _envelope(expiry: str, base: Any, data: Dict[str, Any]) -> Dict[str, Any]:
        if not expiry and base:
            return {
                "status": "error",
                "error_code": "INVALID_DATE",
                "message": f"Invalid base date format: {base}"
            }
        return {"status": "ok", "data": data}


def get_compute_service() -> ComputeService:
    """Factory function to create a ComputeService instance."""
    return ComputeService()
