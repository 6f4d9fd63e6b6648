"""
Sync Journal

Records every mutation of a user-owned transaction as a versioned,
append-only sync log entry. Devices use the log to catch up after working
offline: they ask for every entry above the last version they saw.

The journal:
- Assigns versions per user: next = current max + 1, starting at 1
- Serializes version assignment per user so concurrent appends never share
  or skip a version
- Skips transactions with no owner (legacy public records are not tracked)
"""

import threading
from typing import Optional

import structlog

from pocketbook.models.sync import SyncAction, SyncLogEntry
from pocketbook.models.transaction import Transaction
from pocketbook.services.storage import SyncLogStorageInterface


TRANSACTION_ENTITY = "Transaction"


class SyncJournal:
    """
    Central sync log service.

    Every entry is written to storage and mirrored to the structured log.
    """

    def __init__(self, storage: SyncLogStorageInterface):
        """
        Initialize the journal.

        Args:
            storage: Append-only backend that persists entries.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)
        self._registry_lock = threading.Lock()
        self._user_locks: dict[str, threading.Lock] = {}

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._user_locks[user_id] = lock
            return lock

    def max_version_for_user(self, user_id: str) -> int:
        """Highest version logged for the user (0 if none)."""
        return self._storage.max_version_for_user(user_id) or 0

    def append(self, entry: SyncLogEntry) -> SyncLogEntry:
        """
        Assign the next version for the entry's user and persist it.

        Any version already present on the entry is replaced.

        Returns:
            The entry as stored, with its version set

        Raises:
            StorageError: If the backend cannot persist the entry
        """
        with self._lock_for(entry.user_id):
            version = self.max_version_for_user(entry.user_id) + 1
            versioned = entry.model_copy(update={"version": version})
            self._storage.append(versioned)

        self._logger.info("sync_log_appended", **versioned.to_log_dict())
        return versioned

    def record(
        self,
        transaction: Transaction,
        action: SyncAction,
    ) -> Optional[SyncLogEntry]:
        """
        Log a mutation of a transaction.

        The payload is the transaction snapshot, omitted for DELETE.

        Returns:
            The appended entry, or None if the transaction has no owner
        """
        if transaction.user_id is None:
            self._logger.debug(
                "sync_log_skipped_untracked",
                transaction_id=transaction.id,
                action=action.value,
            )
            return None

        entry = SyncLogEntry(
            entity_id=transaction.id,
            user_id=transaction.user_id,
            action=action,
            entity_type=TRANSACTION_ENTITY,
            payload=None if action == SyncAction.DELETE else transaction.to_snapshot(),
        )
        return self.append(entry)

    def entries_since(
        self,
        user_id: str,
        after_version: int = 0,
    ) -> list[SyncLogEntry]:
        """
        Get a user's entries newer than after_version, oldest first.

        A device that last saw version N calls entries_since(user, N).
        """
        return self._storage.list_for_user(user_id, after_version)
