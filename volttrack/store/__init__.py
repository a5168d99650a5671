"""Record store package."""

from .record_store import (
    STORAGE_KEY,
    NotFoundError,
    ReadOnlyStoreError,
    RecordStore,
    RecordStoreError,
    ValidationError,
    build_record,
    load_and_migrate,
    migrate_record,
)

__all__ = [
    "STORAGE_KEY",
    "NotFoundError",
    "ReadOnlyStoreError",
    "RecordStore",
    "RecordStoreError",
    "ValidationError",
    "build_record",
    "load_and_migrate",
    "migrate_record",
]
