"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for persistence.
This allows us to:
1. Keep the ledger decoupled from where its bytes live
2. Use in-memory storage for testing
3. Swap the JSON files for something else later

The interface is intentionally tiny: a key-value store of serialized
collections. The ledger reads each key once at startup and writes the
keys it touched after every mutation.
"""

from abc import ABC, abstractmethod
from typing import Optional


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self, key: str) -> Optional[str]:
        """
        Read the serialized collection stored under a key.

        Args:
            key: Collection key (e.g. 'k_products')

        Returns:
            The serialized text, or None if nothing was ever saved

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save(self, key: str, data: str) -> bool:
        """
        Replace the serialized collection stored under a key.

        Args:
            key: Collection key
            data: Serialized collection

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    def delete(self, key: str) -> bool:
        """
        Remove a key. Returns False if it did not exist.

        Optional; only used by maintenance tooling and tests.
        """
        raise NotImplementedError


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDataError(StorageError):
    """Stored payload could not be decoded into records."""

    def __init__(self, key: str, reason: str):
        self.key = key
        super().__init__(f"Stored data for '{key}' is unreadable: {reason}")
