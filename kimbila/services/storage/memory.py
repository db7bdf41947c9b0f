"""In-memory storage, for tests and for sessions where the data directory is unusable."""

from typing import Optional

from kimbila.services.storage.interface import LedgerStorageInterface, StorageError


class InMemoryStorage(LedgerStorageInterface):
    """
    Dict-backed storage.

    `fail_saves` / `fail_loads` make every call raise StorageError,
    which is how tests exercise the persistence failure paths.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self.fail_saves = False
        self.fail_loads = False
        self.save_calls: list[str] = []

    def load(self, key: str) -> Optional[str]:
        if self.fail_loads:
            raise StorageError(f"Simulated load failure for {key}")
        return self._data.get(key)

    def save(self, key: str, data: str) -> bool:
        self.save_calls.append(key)
        if self.fail_saves:
            raise StorageError(f"Simulated save failure for {key}")
        self._data[key] = data
        return True

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._data)
