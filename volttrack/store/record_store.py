"""
Record Store

Owns the ordered in-memory collection of transformer records (most recent
first) and every path that writes to it: create, update, delete and the
load-time migration of records written by older versions of the dashboard.

Derived fields (both warranty dates and the persisted status) are recomputed
here on every write; nothing else sets them.
"""

import logging
import math
import uuid
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from volttrack.compute.service import (
    compute_warranty_comm,
    compute_warranty_dispatch,
    derive_status,
    resolve_months,
)
from volttrack.models import TransformerDraft, TransformerRecord
from volttrack.storage import KeyValueStorage, StorageReadError
from volttrack.store.sample_data import SAMPLE_RECORDS


logger = logging.getLogger(__name__)

STORAGE_KEY = "volttrack_mis_data"

DraftInput = Union[TransformerDraft, Dict[str, Any]]

# Fields added after the first schema, with the value used when missing
MIGRATION_DEFAULTS = {
    "salesPerson": "N/A",
    "territory": "",
    "state": "",
    "narration": "",
}

TEXT_DEFAULTS = {
    "serialNumber": "",
    "customerName": "",
    "project": "N/A",
    "dispatchDate": "",
    "voltageRatio": "N/A",
    "commissioningDueDate": "",
    "sourceWarehouse": "Rabale",
    "shippingAddress": "",
    "pbgDueDate": "",
}


class RecordStoreError(Exception):
    """Base class for record store failures."""
    pass


class ValidationError(RecordStoreError):
    """Raised when a draft is missing required fields or carries out-of-range numbers."""

    def __init__(self, missing_fields: List[str], invalid_fields: Optional[List[str]] = None):
        self.missing_fields = list(missing_fields)
        self.invalid_fields = list(invalid_fields or [])
        problems = []
        if self.missing_fields:
            problems.append(f"Missing required field(s): {', '.join(self.missing_fields)}")
        if self.invalid_fields:
            problems.append(f"Out-of-range value(s): {', '.join(self.invalid_fields)}")
        super().__init__("; ".join(problems))


class NotFoundError(RecordStoreError):
    """Raised when an update references an unknown record id."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record not found: {record_id}")


class ReadOnlyStoreError(RecordStoreError):
    """Raised on mutation when the stored record set could not be read at open."""

    def __init__(self, storage_key: str):
        self.storage_key = storage_key
        super().__init__(f"Stored records under {storage_key} are unreadable; refusing to overwrite them")


def new_record_id() -> str:
    return uuid.uuid4().hex


def _to_number(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


def _text(value: Any, default: str = "") -> str:
    if value is None or value == "":
        return default
    return str(value)


def invalid_fields(draft: TransformerDraft) -> List[str]:
    """JSON names of numeric fields given out of range (rating must be positive, PBG non-negative)."""
    invalid = []
    rating = _to_number(draft.rating_kva, None)
    if rating is not None and rating <= 0:
        invalid.append("ratingKVA")
    pbg = _to_number(draft.pbg_amount, None)
    if pbg is not None and pbg < 0:
        invalid.append("pbgAmount")
    return invalid


def build_record(draft: TransformerDraft, record_id: str) -> TransformerRecord:
    """
    Apply defaults, coercion and derivations to a validated draft.

    Args:
        draft: Form payload with serial number and customer name present
        record_id: Id for the resulting record

    Returns:
        Fully derived TransformerRecord
    """
    done_date = draft.commissioning_done_date or None
    months_dispatch = resolve_months(draft.warranty_months_dispatch)
    months_comm = resolve_months(draft.warranty_months_comm)

    return TransformerRecord(
        id=record_id,
        serial_number=draft.serial_number,
        customer_name=draft.customer_name,
        project=_text(draft.project, "N/A"),
        dispatch_date=_text(draft.dispatch_date),
        rating_kva=_to_number(draft.rating_kva),
        voltage_ratio=_text(draft.voltage_ratio, "N/A"),
        commissioning_due_date=_text(draft.commissioning_due_date),
        commissioning_done_date=done_date,
        source_warehouse=_text(draft.source_warehouse, "Rabale"),
        shipping_address=_text(draft.shipping_address),
        warranty_months_comm=months_comm,
        warranty_months_dispatch=months_dispatch,
        warranty_date_dispatch=compute_warranty_dispatch(draft.dispatch_date, months_dispatch),
        warranty_date_comm=compute_warranty_comm(done_date, draft.commissioning_due_date, months_comm),
        pbg_due_date=_text(draft.pbg_due_date),
        pbg_amount=_to_number(draft.pbg_amount),
        status=derive_status(done_date),
        sales_person=_text(draft.sales_person, "N/A"),
        territory=_text(draft.territory),
        state=_text(draft.state),
        narration=_text(draft.narration),
    )


def migrate_record(raw: Union[Dict[str, Any], TransformerRecord]) -> TransformerRecord:
    """
    Bring one stored record up to the current schema.

    Missing newer fields get their defaults and every text field is coerced
    to a string. A missing dispatch warranty date falls back to the stored
    dispatch date (no recompute); a missing commissioning warranty date is
    derived. Status is re-derived from the done date, so a stored "Overdue"
    never survives a load. Out-of-range numbers fall back to 0.
    """
    if isinstance(raw, TransformerRecord):
        raw = raw.to_storage()

    item = dict(raw)
    item["id"] = _text(raw.get("id")) or new_record_id()

    for key, default in TEXT_DEFAULTS.items():
        item[key] = _text(raw.get(key), default)
    for key, default in MIGRATION_DEFAULTS.items():
        item[key] = _text(raw.get(key), default)

    done_date = _text(raw.get("commissioningDoneDate")) or None
    item["commissioningDoneDate"] = done_date

    rating = _to_number(raw.get("ratingKVA"))
    item["ratingKVA"] = rating if rating > 0 else 0.0
    item["pbgAmount"] = max(_to_number(raw.get("pbgAmount")), 0.0)
    item["warrantyMonthsComm"] = resolve_months(raw.get("warrantyMonthsComm"))
    item["warrantyMonthsDispatch"] = resolve_months(raw.get("warrantyMonthsDispatch"))

    item["warrantyDateDispatch"] = _text(raw.get("warrantyDateDispatch")) or item["dispatchDate"]
    item["warrantyDateComm"] = _text(raw.get("warrantyDateComm")) or compute_warranty_comm(
        done_date,
        item["commissioningDueDate"],
        item["warrantyMonthsComm"]
    )
    item["status"] = derive_status(done_date).value

    return TransformerRecord.model_validate(item)


def _migrate_all(raw_records: Iterable[Any]) -> Tuple[List[TransformerRecord], List[Any]]:
    migrated, skipped = [], []
    for index, raw in enumerate(raw_records or []):
        if not isinstance(raw, (dict, TransformerRecord)):
            logger.warning(f"Skipping stored entry - index={index}, type={type(raw).__name__}")
            skipped.append(raw)
            continue
        try:
            migrated.append(migrate_record(raw))
        except PydanticValidationError as e:
            logger.warning(f"Skipping unreadable record - index={index}, error={e}")
            skipped.append(raw)
    return migrated, skipped


def load_and_migrate(raw_records: Iterable[Any]) -> List[TransformerRecord]:
    """
    Migrate a stored record array. Idempotent.

    Entries that are not objects, or that still fail model validation after
    defaulting, are skipped with a warning.
    """
    migrated, _ = _migrate_all(raw_records)
    return migrated


class RecordStore:
    """
    Canonical record collection for one dashboard session.

    Every mutation overwrites the storage key with the full serialized array,
    followed by any stored entries that could not be migrated so they are
    never lost. The in-memory collection only changes once the write succeeds.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        storage_key: str = STORAGE_KEY,
        records: Optional[Iterable[TransformerRecord]] = None
    ):
        """
        Initialize the store.

        Args:
            storage: Backend written after every mutation (None keeps the store in memory only)
            storage_key: Key holding the serialized record array
            records: Initial, already-migrated records
        """
        self.storage = storage
        self.storage_key = storage_key
        self.read_only = False
        self._records: List[TransformerRecord] = list(records or [])
        self._unmigrated: List[Any] = []

    @classmethod
    def open(
        cls,
        storage: KeyValueStorage,
        storage_key: str = STORAGE_KEY,
        seed: bool = True
    ) -> "RecordStore":
        """
        Load and migrate the stored record set.

        When the key has never been written and seed is set, the sample
        records are loaded instead. Unreadable stored data opens an empty,
        read-only store and is left untouched.
        """
        store = cls(storage, storage_key)
        try:
            raw = storage.load(storage_key)
        except StorageReadError as e:
            logger.error(f"Stored records unreadable, opening read-only - key={storage_key}, error={e}")
            store.read_only = True
            return store

        if raw is None:
            if seed:
                logger.info(f"No stored records - seeding samples, key={storage_key}")
                store._records = load_and_migrate(SAMPLE_RECORDS)
                store._persist(store._records, [])
            return store

        if not isinstance(raw, list):
            logger.error(f"Stored record set is not a list, opening read-only - key={storage_key}, type={type(raw).__name__}")
            store.read_only = True
            return store

        store._records, store._unmigrated = _migrate_all(raw)
        logger.info(f"Loaded records - key={storage_key}, count={len(store._records)}, skipped={len(store._unmigrated)}")
        if store._unmigrated:
            logger.warning(f"Stored entries kept as-is - key={storage_key}, count={len(store._unmigrated)}")
        else:
            store._persist(store._records, [])
        return store

    @property
    def records(self) -> List[TransformerRecord]:
        """Ordered copy of the collection."""
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TransformerRecord]:
        return iter(list(self._records))

    def get(self, record_id: str) -> Optional[TransformerRecord]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def _index_of(self, record_id: str) -> int:
        for i, record in enumerate(self._records):
            if record.id == record_id:
                return i
        return -1

    @staticmethod
    def _validated_draft(draft: DraftInput) -> TransformerDraft:
        if not isinstance(draft, TransformerDraft):
            draft = TransformerDraft.model_validate(draft)
        missing = draft.missing_fields()
        invalid = invalid_fields(draft)
        if missing or invalid:
            raise ValidationError(missing, invalid)
        return draft

    def create(self, draft: DraftInput) -> TransformerRecord:
        """
        Create a record from a form draft and prepend it.

        Raises:
            ValidationError: If serial number or customer name is empty, or a number is out of range
            ReadOnlyStoreError: If the stored set was unreadable at open
        """
        draft = self._validated_draft(draft)

        record_id = new_record_id()
        while self.get(record_id) is not None:
            record_id = new_record_id()

        record = build_record(draft, record_id)
        self._commit([record] + self._records)

        logger.info(f"Created record - id={record.id}, serial_number={record.serial_number}")
        return record

    def update(self, record_id: str, draft: DraftInput) -> TransformerRecord:
        """
        Replace a record in place, keeping its id and position.

        Raises:
            NotFoundError: If no record has this id
            ValidationError: If serial number or customer name is empty, or a number is out of range
        """
        index = self._index_of(record_id)
        if index < 0:
            raise NotFoundError(record_id)
        draft = self._validated_draft(draft)

        record = build_record(draft, record_id)
        records = list(self._records)
        records[index] = record
        self._commit(records)

        logger.info(f"Updated record - id={record_id}, status={record.status.value}")
        return record

    def delete(self, record_id: str) -> bool:
        """Remove a record. Unknown ids are a no-op returning False."""
        index = self._index_of(record_id)
        if index < 0:
            logger.warning(f"Delete ignored, record not found - id={record_id}")
            return False

        self._commit(self._records[:index] + self._records[index + 1:])

        logger.info(f"Deleted record - id={record_id}")
        return True

    def replace_all(self, raw_records: Iterable[Any]) -> List[TransformerRecord]:
        """Import a whole record set through migration and persist it."""
        records, skipped = _migrate_all(raw_records)
        self._commit(records, skipped)
        logger.info(f"Replaced record set - count={len(self._records)}")
        return self.records

    def to_storage(self) -> List[Dict[str, Any]]:
        return [record.to_storage() for record in self._records]

    def _commit(self, records: List[TransformerRecord], unmigrated: Optional[List[Any]] = None) -> None:
        if self.read_only:
            raise ReadOnlyStoreError(self.storage_key)
        if unmigrated is None:
            unmigrated = self._unmigrated
        self._persist(records, unmigrated)
        self._records = records
        self._unmigrated = unmigrated

    def _persist(self, records: List[TransformerRecord], unmigrated: List[Any]) -> None:
        if self.storage is None:
            return
        payload = [record.to_storage() for record in records] + list(unmigrated)
        self.storage.save(self.storage_key, payload)
