"""
Local File Storage Implementation

Files live under a single data directory:
- Whole-document snapshots (budgets, transactions) are JSON arrays, replaced
  atomically: written to a temp file in the same directory, then renamed over
  the target with os.replace. A crash mid-write leaves the old snapshot intact.
- The sync log is NDJSON (one entry per line), opened in append mode only.

TRADEOFFS:
- Snapshot writes rewrite the whole collection (fine for personal volumes)
- Queries filter in Python after loading everything

Transient OSErrors are retried with tenacity; anything left after the last
attempt is raised as StorageError.
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import TypeAdapter, ValidationError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pocketbook.models.sync import SyncLogEntry
from pocketbook.models.transaction import Transaction
from pocketbook.services.storage.interface import (
    CorruptDataError,
    FileStorageInterface,
    StorageError,
    SyncLogStorageInterface,
)
from pocketbook.services.storage.memory import InMemoryTransactionStorage

logger = structlog.get_logger(__name__)

_TRANSACTION_LIST = TypeAdapter(list[Transaction])


def _retrying(attempts: int) -> Retrying:
    return Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )


class LocalFileStorage(FileStorageInterface):
    """
    Whole-document storage in a local directory.

    The directory is created on first write.
    """

    def __init__(self, base_dir: Union[str, Path], write_attempts: int = 3):
        self._base_dir = Path(base_dir)
        self._write_attempts = write_attempts

    def _path(self, name: str) -> Path:
        return self._base_dir / name

    def read_file(self, name: str) -> Optional[str]:
        path = self._path(name)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def write_file(self, name: str, text: str) -> None:
        path = self._path(name)
        try:
            for attempt in _retrying(self._write_attempts):
                with attempt:
                    self._write_atomically(path, text)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    @staticmethod
    def _write_atomically(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except Exception:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise


class JsonTransactionStorage(InMemoryTransactionStorage):
    """
    Transactions persisted as a JSON array snapshot.

    The full collection is loaded once and rewritten after every mutation.
    If a rewrite fails the in-memory collection is rolled back, so memory
    and disk never disagree.
    """

    def __init__(
        self,
        file_storage: FileStorageInterface,
        file_name: str = "transactions.json",
    ):
        super().__init__()
        self._file_storage = file_storage
        self._file_name = file_name
        self._load()

    def _load(self) -> None:
        text = self._file_storage.read_file(self._file_name)
        if text is None or not text.strip():
            return
        try:
            transactions = _TRANSACTION_LIST.validate_json(text)
        except ValidationError as e:
            raise CorruptDataError(f"Corrupt transaction snapshot: {e}") from e
        for transaction in transactions:
            if transaction.id:
                self._transactions[transaction.id] = transaction

    def _flush(self) -> None:
        payload = _TRANSACTION_LIST.dump_json(
            list(self._transactions.values()),
            by_alias=True,
        )
        self._file_storage.write_file(self._file_name, payload.decode("utf-8"))

    def _mutate(self, operation) -> None:
        with self._lock:
            before = dict(self._transactions)
            operation()
            try:
                self._flush()
            except StorageError:
                self._transactions = before
                raise

    def save(self, transaction: Transaction) -> Transaction:
        self._mutate(lambda: super(JsonTransactionStorage, self).save(transaction))
        return transaction.model_copy(deep=True)

    def delete_by_id(self, transaction_id: str) -> None:
        if not self.exists_by_id(transaction_id):
            return
        self._mutate(lambda: super(JsonTransactionStorage, self).delete_by_id(transaction_id))

    def delete_all(self) -> None:
        self._mutate(super().delete_all)


class JsonLinesSyncLogStorage(SyncLogStorageInterface):
    """
    Persistent, append-only NDJSON sync log.

    Listing parses the file on every call. Per-user max versions are read once
    and then kept current by append, so appends cost the same however long
    the log grows. This instance must be the file's only writer.
    """

    def __init__(self, file_path: Union[str, Path], write_attempts: int = 3):
        self._file_path = Path(file_path)
        self._write_attempts = write_attempts
        self._lock = threading.Lock()
        self._max_versions: Optional[dict[str, int]] = None

    def append(self, entry: SyncLogEntry) -> None:
        line = entry.model_dump_json(by_alias=True) + "\n"
        with self._lock:
            try:
                for attempt in _retrying(self._write_attempts):
                    with attempt:
                        self._file_path.parent.mkdir(parents=True, exist_ok=True)
                        with open(self._file_path, mode="a", encoding="utf-8") as handle:
                            handle.write(line)
            except OSError as e:
                raise StorageError(f"Failed to append sync log entry: {e}") from e

            if self._max_versions is not None and entry.version:
                current = self._max_versions.get(entry.user_id, 0)
                self._max_versions[entry.user_id] = max(current, entry.version)

    def _read_all(self) -> list[SyncLogEntry]:
        if not self._file_path.exists():
            return []

        entries: list[SyncLogEntry] = []
        try:
            with open(self._file_path, encoding="utf-8") as handle:
                for line_number, line in enumerate(handle, start=1):
                    stripped = line.strip()
                    if not stripped:
                        continue
                    try:
                        entries.append(SyncLogEntry.model_validate_json(stripped))
                    except ValidationError:
                        logger.warning(
                            "sync_log_line_skipped",
                            path=str(self._file_path),
                            line=line_number,
                        )
        except OSError as e:
            raise StorageError(f"Failed to read sync log: {e}") from e
        return entries

    def _index_max_versions(self) -> dict[str, int]:
        if self._max_versions is None:
            max_versions: dict[str, int] = {}
            for entry in self._read_all():
                if entry.version:
                    current = max_versions.get(entry.user_id, 0)
                    max_versions[entry.user_id] = max(current, entry.version)
            self._max_versions = max_versions
        return self._max_versions

    def max_version_for_user(self, user_id: str) -> int:
        with self._lock:
            return self._index_max_versions().get(user_id, 0)

    def list_for_user(
        self,
        user_id: str,
        after_version: int = 0,
    ) -> list[SyncLogEntry]:
        with self._lock:
            entries = self._read_all()
        matching = [
            e for e in entries
            if e.user_id == user_id and (e.version or 0) > after_version
        ]
        return sorted(matching, key=lambda e: e.version or 0)
