"""Services package."""

from kimbila.services.storage import (
    CorruptDataError,
    InMemoryStorage,
    JsonFileStorage,
    LedgerStorageInterface,
    StorageError,
)

__all__ = [
    "CorruptDataError",
    "InMemoryStorage",
    "JsonFileStorage",
    "LedgerStorageInterface",
    "StorageError",
]
