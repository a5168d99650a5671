"""
Key-Value Storage
=================
Whole-value persistence for the record collection. One key holds the JSON
array of every record; saves overwrite it.
"""

from .key_value import KeyValueStorage, JsonFileStorage, MemoryStorage, StorageReadError

__all__ = ["KeyValueStorage", "JsonFileStorage", "MemoryStorage", "StorageReadError"]
