"""
Transaction Reconciler

Applies client writes (single edits or offline batches) to server state.

Rules:
- Conflicts resolve last-write-wins on updated_at (see policy.resolve)
- Every accepted mutation of a user-owned transaction is journaled once
- Stale writes are silent no-ops: the stored record comes back unchanged
  and nothing is journaled
- Unknown ids are reported as None/False, never raised
- Storage failures are logged and reported the same way
"""

from datetime import datetime
from typing import Callable, Iterable, Optional
from uuid import uuid4

import structlog

from pocketbook.models.base import utcnow
from pocketbook.models.sync import Resolution, SyncAction, SyncLogEntry
from pocketbook.models.transaction import Transaction
from pocketbook.services.storage import StorageError, TransactionStorageInterface
from pocketbook.sync.policy import resolve
from pocketbook.synclog import SyncJournal


def new_transaction_id() -> str:
    return str(uuid4())


def ordered_stamps(
    created_at: Optional[datetime],
    updated_at: Optional[datetime],
    now: datetime,
) -> tuple[datetime, datetime]:
    """
    Fill missing client timestamps from now.

    A missing created_at never lands after the client's updated_at, and the
    result always satisfies updated_at >= created_at.
    """
    if created_at is None:
        created_at = now if updated_at is None else min(now, updated_at)
    if updated_at is None:
        updated_at = now
    return created_at, max(created_at, updated_at)


class TransactionReconciler:
    """
    Write-side service for transactions.

    Flow for every accepted write:
    1. Stamp ids/timestamps
    2. Persist to transaction storage
    3. Append one entry to the sync journal
    """

    def __init__(
        self,
        storage: TransactionStorageInterface,
        journal: SyncJournal,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = new_transaction_id,
    ):
        self._storage = storage
        self._journal = journal
        self._clock = clock
        self._id_factory = id_factory
        self._logger = structlog.get_logger(__name__)

    # =========================================================================
    # SINGLE WRITES
    # =========================================================================

    def add(self, transaction: Transaction) -> Optional[Transaction]:
        """
        Add a new transaction.

        Assigns an id if absent and stamps created_at/updated_at to now.

        Returns:
            The stored transaction, or None if storage failed
        """
        now = self._clock()
        stamped = transaction.model_copy(update={
            "id": transaction.id or self._id_factory(),
            "created_at": now,
            "updated_at": now,
        })
        try:
            saved = self._storage.save(stamped)
        except StorageError as e:
            self._logger.error(
                "transaction_save_failed",
                transaction_id=stamped.id,
                error=str(e),
            )
            return None

        self._journal_mutation(saved, SyncAction.ADD)
        return saved

    def delete(self, transaction_id: str) -> bool:
        """
        Delete a transaction.

        Returns:
            True if it existed and was deleted; False if unknown or storage failed
        """
        try:
            existing = self._storage.find_by_id(transaction_id)
            if existing is None:
                return False
            self._storage.delete_by_id(transaction_id)
        except StorageError as e:
            self._logger.error(
                "transaction_delete_failed",
                transaction_id=transaction_id,
                error=str(e),
            )
            return False

        self._journal_mutation(existing, SyncAction.DELETE)
        return True

    def update(
        self,
        transaction_id: str,
        incoming: Transaction,
    ) -> Optional[Transaction]:
        """
        Update a transaction using last-write-wins.

        The id and created_at always come from the stored record. updated_at
        is taken from the incoming write, or stamped to now if absent. It
        never lands before the stored created_at.

        Returns:
            - None if the id is unknown (or storage failed)
            - The stored record, unchanged, if the incoming write is stale
            - The merged record otherwise
        """
        try:
            existing = self._storage.find_by_id(transaction_id)
        except StorageError as e:
            self._logger.error(
                "transaction_lookup_failed",
                transaction_id=transaction_id,
                error=str(e),
            )
            return None

        if existing is None:
            return None

        if resolve(existing, incoming) == Resolution.KEEP:
            self._logger.info(
                "stale_write_discarded",
                transaction_id=transaction_id,
                incoming_updated_at=incoming.updated_at.isoformat(),
                stored_updated_at=existing.updated_at.isoformat(),
            )
            return existing

        updated_at = incoming.updated_at or self._clock()
        if existing.created_at is not None and updated_at < existing.created_at:
            updated_at = existing.created_at

        merged = incoming.model_copy(update={
            "id": transaction_id,
            "created_at": existing.created_at,
            "updated_at": updated_at,
        })
        try:
            saved = self._storage.save(merged)
        except StorageError as e:
            self._logger.error(
                "transaction_save_failed",
                transaction_id=transaction_id,
                error=str(e),
            )
            return None

        self._journal_mutation(saved, SyncAction.UPDATE)
        return saved

    # =========================================================================
    # BATCH SYNC
    # =========================================================================

    def batch_sync(self, transactions: Iterable[Transaction]) -> dict[str, str]:
        """
        Apply an offline batch in input order.

        Each transaction gets an id if it has none. Known ids go through
        update() (last-write-wins, possibly a no-op); unknown ids are inserted
        keeping the client's id and any client timestamps.

        Returns:
            Mapping of each transaction's original id to the id it is stored
            under. Ids are currently preserved, so the mapping is identity.
            Items that fail to persist are left out.
        """
        id_mapping: dict[str, str] = {}

        for transaction in transactions:
            if not transaction.id:
                transaction = transaction.model_copy(update={"id": self._id_factory()})
            original_id = transaction.id

            try:
                stored_id = self._sync_one(transaction)
            except StorageError as e:
                self._logger.error(
                    "batch_item_failed",
                    transaction_id=original_id,
                    error=str(e),
                )
                continue

            if stored_id is not None:
                id_mapping[original_id] = stored_id

        self._logger.info(
            "batch_sync_completed",
            synced=len(id_mapping),
        )
        return id_mapping

    def _sync_one(self, transaction: Transaction) -> Optional[str]:
        if self._storage.find_by_id(transaction.id) is not None:
            updated = self.update(transaction.id, transaction)
            return transaction.id if updated is not None else None

        created_at, updated_at = ordered_stamps(
            transaction.created_at,
            transaction.updated_at,
            self._clock(),
        )
        stamped = transaction.model_copy(update={
            "created_at": created_at,
            "updated_at": updated_at,
        })
        saved = self._storage.save(stamped)
        self._journal_mutation(saved, SyncAction.ADD)
        return saved.id

    # =========================================================================
    # BULK OPERATIONS
    # =========================================================================

    def add_many(self, transactions: Iterable[Transaction]) -> list[Transaction]:
        """Add several transactions; failed ones are left out of the result."""
        added = []
        for transaction in transactions:
            saved = self.add(transaction)
            if saved is not None:
                added.append(saved)
        return added

    def clear_all(self) -> int:
        """
        Delete every transaction, journaling a DELETE for each owned one.

        Returns:
            Number of transactions removed (0 if storage failed)
        """
        try:
            removed = self._storage.find_all()
            self._storage.delete_all()
        except StorageError as e:
            self._logger.error("transaction_clear_failed", error=str(e))
            return 0

        for transaction in removed:
            self._journal_mutation(transaction, SyncAction.DELETE)
        return len(removed)

    def changes_since(
        self,
        user_id: str,
        after_version: int = 0,
    ) -> list[SyncLogEntry]:
        """Sync log entries a device has not seen yet."""
        return self._journal.entries_since(user_id, after_version)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _journal_mutation(
        self,
        transaction: Transaction,
        action: SyncAction,
    ) -> Optional[SyncLogEntry]:
        try:
            return self._journal.record(transaction, action)
        except StorageError as e:
            self._logger.error(
                "sync_log_append_failed",
                transaction_id=transaction.id,
                action=action.value,
                error=str(e),
            )
            return None
