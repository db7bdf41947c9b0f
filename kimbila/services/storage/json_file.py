"""
JSON File Storage Implementation

DESIGN DECISION: A directory of JSON files is the storage backend because:
1. The app runs for one person on one device
2. No database setup required
3. The owner can open and back up the files directly

Each key is one file, `<data_dir>/<key>.json`. Writes go to a temporary
file in the same directory and are moved into place with os.replace, so
a crash mid-write leaves the previous version intact.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kimbila.config import get_settings
from kimbila.services.storage.interface import (
    CorruptDataError,
    LedgerStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class JsonFileStorage(LedgerStorageInterface):
    """
    Key-value storage backed by one JSON file per key.

    Transient OS errors on write (locked file, full disk that frees up)
    are retried a few times before giving up with StorageError.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        save_attempts: Optional[int] = None,
    ):
        if data_dir is None or save_attempts is None:
            settings = get_settings().storage
            if data_dir is None:
                data_dir = settings.data_dir
            if save_attempts is None:
                save_attempts = settings.save_attempts
        self._data_dir = Path(data_dir)
        self._save_attempts = save_attempts

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not key or os.sep in key or (os.altsep and os.altsep in key) or key.startswith("."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}.json"

    def load(self, key: str) -> Optional[str]:
        """
        Read a key; a missing file means the collection was never saved.

        A file that is not UTF-8 text cannot be handed back as a string,
        so its bytes are copied to `<key>_unreadable.json` here before
        CorruptDataError is raised.
        """
        path = self._path_for(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}")

        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            self._set_aside_bytes(key, raw)
            raise CorruptDataError(key, f"not UTF-8 text ({e.reason})")

    def _set_aside_bytes(self, key: str, raw: bytes) -> None:
        path = self._path_for(f"{key}_unreadable")
        try:
            path.write_bytes(raw)
        except OSError as e:
            logger.error("unreadable_copy_failed", key=key, error=str(e))

    def _write_atomic(self, path: Path, data: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.stem}-", suffix=".tmp", dir=path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def save(self, key: str, data: str) -> bool:
        """Write a key atomically, retrying transient OS errors."""
        path = self._path_for(key)
        retrying = Retrying(
            stop=stop_after_attempt(self._save_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            retry=retry_if_exception_type(OSError),
        )
        try:
            for attempt in retrying:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.warning(
                            "storage_save_retry",
                            key=key,
                            attempt=attempt.retry_state.attempt_number,
                        )
                    self._write_atomic(path, data)
        except RetryError as e:
            cause = e.last_attempt.exception()
            raise StorageError(f"Failed to save {key}: {cause}")
        return True

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}")
