"""
In-process memory storage backends.

Suitable for single-process use and testing. All state is lost when the
process exits; use the local file backends for durability.

Every read hands out a copy so callers can never mutate stored state.
"""

import threading
from datetime import datetime
from typing import Optional

from pocketbook.models.sync import SyncLogEntry
from pocketbook.models.transaction import Transaction
from pocketbook.services.storage.interface import (
    FileStorageInterface,
    SyncLogStorageInterface,
    TransactionStorageInterface,
)


class InMemoryTransactionStorage(TransactionStorageInterface):
    """Transactions kept in a dict keyed by id, in insertion order."""

    def __init__(self) -> None:
        self._transactions: dict[str, Transaction] = {}
        self._lock = threading.RLock()

    # ─── Writes ──────────────────────────────────────────────────────────────

    def save(self, transaction: Transaction) -> Transaction:
        if not transaction.id:
            raise ValueError("Transaction must have an id before it is saved")
        with self._lock:
            self._transactions[transaction.id] = transaction.model_copy(deep=True)
        return transaction.model_copy(deep=True)

    def delete_by_id(self, transaction_id: str) -> None:
        with self._lock:
            self._transactions.pop(transaction_id, None)

    def delete_all(self) -> None:
        with self._lock:
            self._transactions.clear()

    # ─── Reads ───────────────────────────────────────────────────────────────

    def find_by_id(self, transaction_id: str) -> Optional[Transaction]:
        with self._lock:
            transaction = self._transactions.get(transaction_id)
        return transaction.model_copy(deep=True) if transaction else None

    def exists_by_id(self, transaction_id: str) -> bool:
        with self._lock:
            return transaction_id in self._transactions

    def find_all(self) -> list[Transaction]:
        with self._lock:
            return [t.model_copy(deep=True) for t in self._transactions.values()]

    def find_visible_for_user(self, user_id: str) -> list[Transaction]:
        return [
            t for t in self.find_all()
            if t.user_id is None or t.user_id == user_id
        ]

    def find_by_date_range(
        self,
        start: datetime,
        end: datetime,
    ) -> list[Transaction]:
        return [
            t for t in self.find_all()
            if t.timestamp is not None and start <= t.timestamp <= end
        ]

    def find_by_category(self, category_id: str) -> list[Transaction]:
        return [t for t in self.find_all() if t.category_id == category_id]

    def count(self) -> int:
        with self._lock:
            return len(self._transactions)


class InMemorySyncLogStorage(SyncLogStorageInterface):
    """Append-only list of sync log entries."""

    def __init__(self) -> None:
        self._entries: list[SyncLogEntry] = []
        self._lock = threading.Lock()

    def append(self, entry: SyncLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def max_version_for_user(self, user_id: str) -> int:
        with self._lock:
            versions = [
                e.version for e in self._entries
                if e.user_id == user_id and e.version is not None
            ]
        return max(versions, default=0)

    def list_for_user(
        self,
        user_id: str,
        after_version: int = 0,
    ) -> list[SyncLogEntry]:
        with self._lock:
            entries = [
                e for e in self._entries
                if e.user_id == user_id and (e.version or 0) > after_version
            ]
        return sorted(entries, key=lambda e: e.version or 0)

    def all_entries(self) -> list[SyncLogEntry]:
        """Every entry in append order."""
        with self._lock:
            return list(self._entries)


class InMemoryFileStorage(FileStorageInterface):
    """
    Documents kept in a dict.

    Every write is also recorded in `writes` as (name, text) so tests can
    assert exactly when a snapshot was rewritten.
    """

    def __init__(self, files: Optional[dict[str, str]] = None) -> None:
        self._files: dict[str, str] = dict(files or {})
        self.writes: list[tuple[str, str]] = []

    def read_file(self, name: str) -> Optional[str]:
        return self._files.get(name)

    def write_file(self, name: str, text: str) -> None:
        self._files[name] = text
        self.writes.append((name, text))
