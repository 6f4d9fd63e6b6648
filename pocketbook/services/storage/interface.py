"""
Abstract Storage Interfaces

The core depends only on these interfaces. Concrete backends (in-memory,
local files, a database later) implement them without business logic
changing.

Three collaborators are modelled:
1. Transaction storage - durable home of transactions
2. Sync log storage - append-only, per-user versioned mutation log
3. File storage - whole-document read/write used for budget snapshots

Backends raise StorageError (or a subclass) for I/O failures; callers in the
core decide how a failure is reported.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from pocketbook.models.sync import SyncLogEntry
from pocketbook.models.transaction import Transaction


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Transactions passed in must already carry an id.
    """

    @abstractmethod
    def save(self, transaction: Transaction) -> Transaction:
        """
        Insert or replace a transaction by id.

        Returns:
            The stored transaction

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def find_by_id(self, transaction_id: str) -> Optional[Transaction]:
        """Return the transaction with this id, or None."""
        pass

    @abstractmethod
    def exists_by_id(self, transaction_id: str) -> bool:
        """Check whether a transaction with this id is stored."""
        pass

    @abstractmethod
    def delete_by_id(self, transaction_id: str) -> None:
        """Delete the transaction with this id (no-op if absent)."""
        pass

    @abstractmethod
    def find_all(self) -> list[Transaction]:
        """Return every stored transaction."""
        pass

    @abstractmethod
    def find_visible_for_user(self, user_id: str) -> list[Transaction]:
        """
        Return the user's transactions plus legacy public records.

        Legacy public records are transactions with no user_id.
        """
        pass

    @abstractmethod
    def find_by_date_range(
        self,
        start: datetime,
        end: datetime,
    ) -> list[Transaction]:
        """Return transactions whose timestamp falls within [start, end]."""
        pass

    @abstractmethod
    def find_by_category(self, category_id: str) -> list[Transaction]:
        """Return transactions in a category."""
        pass

    @abstractmethod
    def delete_all(self) -> None:
        """Remove every stored transaction."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of stored transactions."""
        pass


class SyncLogStorageInterface(ABC):
    """
    Abstract interface for sync log storage.

    Sync logs are append-only - we never delete or modify entries.
    Version assignment is the journal's job; storage persists what it gets.
    """

    @abstractmethod
    def append(self, entry: SyncLogEntry) -> None:
        """
        Append a versioned entry to the log.

        Raises:
            StorageError: If the append fails
        """
        pass

    @abstractmethod
    def max_version_for_user(self, user_id: str) -> int:
        """Highest version logged for the user, or 0 if none."""
        pass

    @abstractmethod
    def list_for_user(
        self,
        user_id: str,
        after_version: int = 0,
    ) -> list[SyncLogEntry]:
        """
        Get a user's entries with version greater than after_version.

        Returns:
            Entries in ascending version order
        """
        pass


class FileStorageInterface(ABC):
    """
    Whole-document file storage.

    Documents are UTF-8 text, read and written in full.
    """

    @abstractmethod
    def read_file(self, name: str) -> Optional[str]:
        """
        Read a document.

        Returns:
            The document text, or None if it does not exist

        Raises:
            StorageError: If the document exists but cannot be read
        """
        pass

    @abstractmethod
    def write_file(self, name: str, text: str) -> None:
        """
        Replace a document with new text.

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDataError(StorageError):
    """A stored document exists but cannot be parsed."""
    pass
