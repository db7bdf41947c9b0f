"""
Storage Services Package

Provides the abstract persistence interface and concrete implementations.
JSON files on the local disk are the default backend; the in-memory one
is used by tests.
"""

from kimbila.services.storage.interface import (
    CorruptDataError,
    LedgerStorageInterface,
    StorageError,
)
from kimbila.services.storage.json_file import JsonFileStorage
from kimbila.services.storage.memory import InMemoryStorage

__all__ = [
    # Interface
    "LedgerStorageInterface",
    # Exceptions
    "CorruptDataError",
    "StorageError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]
