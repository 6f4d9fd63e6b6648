"""
Tests for the transaction reconciler

Covers single writes, last-write-wins updates, offline batch sync, and the
failure policy (unknown ids and storage errors are reported, never raised).
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from pocketbook.models import SyncAction
from pocketbook.services.storage import (
    InMemoryFileStorage,
    InMemorySyncLogStorage,
    InMemoryTransactionStorage,
    JsonTransactionStorage,
    StorageError,
)
from pocketbook.sync import TransactionReconciler
from pocketbook.sync.reconciler import ordered_stamps
from pocketbook.synclog import SyncJournal


class FailingSaveStorage(InMemoryTransactionStorage):
    def save(self, transaction):
        raise StorageError("disk full")


class FailingSyncLogStorage(InMemorySyncLogStorage):
    def append(self, entry):
        raise StorageError("sync log unavailable")


def _actions(sync_log_storage):
    return [e.action for e in sync_log_storage.all_entries()]


class TestAdd:
    """Test single transaction writes."""

    def test_assigns_id_and_stamps_timestamps(
        self, transaction_storage, journal, sync_log_storage, make_transaction, now
    ):
        """Test that add assigns an id and stamps both timestamps."""
        reconciler = TransactionReconciler(
            transaction_storage, journal, clock=lambda: now, id_factory=lambda: "gen-1"
        )
        saved = reconciler.add(make_transaction())

        assert saved.id == "gen-1"
        assert saved.created_at == now
        assert saved.updated_at == now
        assert transaction_storage.find_by_id("gen-1") == saved
        assert _actions(sync_log_storage) == [SyncAction.ADD]

    def test_keeps_client_id(self, reconciler, make_transaction):
        """Test that a client supplied id is kept."""
        assert reconciler.add(make_transaction(id="client-1")).id == "client-1"

    def test_public_transaction_not_logged(self, reconciler, sync_log_storage, make_transaction):
        """Test that ownerless transactions are not journaled."""
        saved = reconciler.add(make_transaction(user_id=None))
        assert saved is not None
        assert sync_log_storage.all_entries() == []

    def test_storage_failure_returns_none(self, journal, sync_log_storage, make_transaction):
        """Test that a storage error is reported as None."""
        reconciler = TransactionReconciler(FailingSaveStorage(), journal)
        assert reconciler.add(make_transaction()) is None
        assert sync_log_storage.all_entries() == []

    def test_sync_log_failure_keeps_saved_transaction(self, transaction_storage, make_transaction):
        """Test that a journal failure does not undo the save."""
        journal = SyncJournal(FailingSyncLogStorage())
        reconciler = TransactionReconciler(transaction_storage, journal)

        saved = reconciler.add(make_transaction(id="t1"))
        assert saved is not None
        assert transaction_storage.exists_by_id("t1")

    def test_add_many(self, reconciler, transaction_storage, make_transaction):
        """Test adding several transactions at once."""
        added = reconciler.add_many([make_transaction(), make_transaction()])
        assert len(added) == 2
        assert transaction_storage.count() == 2


class TestDelete:
    """Test transaction deletion."""

    def test_unknown_id_returns_false(self, reconciler, sync_log_storage):
        """Test that deleting an unknown id returns False."""
        assert reconciler.delete("missing") is False
        assert sync_log_storage.all_entries() == []

    def test_deletes_and_logs_without_payload(
        self, reconciler, transaction_storage, sync_log_storage, make_transaction
    ):
        """Test that a delete is journaled without a payload."""
        reconciler.add(make_transaction(id="t1"))

        assert reconciler.delete("t1") is True
        assert not transaction_storage.exists_by_id("t1")

        last = sync_log_storage.all_entries()[-1]
        assert last.action == SyncAction.DELETE
        assert last.entity_id == "t1"
        assert last.payload is None
        assert last.version == 2


class TestUpdate:
    """Test last-write-wins updates."""

    def test_unknown_id_returns_none(self, reconciler, make_transaction):
        """Test that updating an unknown id returns None."""
        assert reconciler.update("missing", make_transaction()) is None

    def test_stale_write_is_discarded(
        self, reconciler, transaction_storage, sync_log_storage, make_transaction, now
    ):
        """Test that an older write leaves the stored record alone."""
        reconciler.add(make_transaction(id="t1"))
        before = transaction_storage.find_by_id("t1")

        stale = make_transaction(
            amount=Decimal("999"),
            updated_at=now - timedelta(hours=1),
        )
        result = reconciler.update("t1", stale)

        assert result == before
        assert transaction_storage.find_by_id("t1").to_snapshot() == before.to_snapshot()
        assert _actions(sync_log_storage) == [SyncAction.ADD]

    def test_newer_write_replaces_and_keeps_identity(
        self, reconciler, transaction_storage, sync_log_storage, make_transaction, now
    ):
        """Test that a newer write replaces fields but keeps id and created_at."""
        reconciler.add(make_transaction(id="t1"))
        incoming = make_transaction(
            id="other",
            amount=Decimal("20"),
            created_at=now - timedelta(days=30),
            updated_at=now + timedelta(hours=1),
        )
        saved = reconciler.update("t1", incoming)

        assert saved.id == "t1"
        assert saved.amount == Decimal("20")
        assert saved.created_at == now
        assert saved.updated_at == now + timedelta(hours=1)
        assert transaction_storage.find_by_id("t1").amount == Decimal("20")
        assert _actions(sync_log_storage) == [SyncAction.ADD, SyncAction.UPDATE]

    def test_equal_timestamps_replace(self, reconciler, make_transaction, now):
        """Test that an equal updated_at still replaces."""
        reconciler.add(make_transaction(id="t1"))
        saved = reconciler.update("t1", make_transaction(amount=Decimal("7"), updated_at=now))
        assert saved.amount == Decimal("7")

    def test_missing_incoming_timestamp_stamped_now(
        self, transaction_storage, journal, make_transaction
    ):
        """Test that a write without updated_at is stamped with the clock."""
        times = iter([datetime(2024, 1, 1), datetime(2024, 1, 2)])
        reconciler = TransactionReconciler(transaction_storage, journal, clock=lambda: next(times))
        reconciler.add(make_transaction(id="t1"))

        saved = reconciler.update("t1", make_transaction(amount=Decimal("3")))
        assert saved.updated_at == datetime(2024, 1, 2)

    def test_earlier_write_over_record_without_updated_at(
        self, reconciler, transaction_storage, make_transaction
    ):
        """Test that an updated_at before the stored created_at is moved up to it."""
        created = datetime(2024, 5, 1)
        transaction_storage.save(make_transaction(id="t1", created_at=created))

        saved = reconciler.update(
            "t1",
            make_transaction(amount=Decimal("2"), updated_at=datetime(2024, 1, 1)),
        )
        assert saved.amount == Decimal("2")
        assert saved.created_at == created
        assert saved.updated_at == created
        assert transaction_storage.find_by_id("t1").updated_at >= created


class TestBatchSync:
    """Test offline batch sync."""

    def test_new_transaction_without_id(
        self, transaction_storage, journal, sync_log_storage, make_transaction
    ):
        """Test that an item without id is added under a generated id."""
        reconciler = TransactionReconciler(
            transaction_storage, journal, id_factory=lambda: "gen-1"
        )
        mapping = reconciler.batch_sync([make_transaction(id=None, amount=Decimal("10"))])

        assert mapping == {"gen-1": "gen-1"}
        assert transaction_storage.exists_by_id("gen-1")
        entries = journal.entries_since("u1")
        assert len(entries) == 1
        assert entries[0].action == SyncAction.ADD

    def test_client_ids_and_timestamps_preserved(
        self, reconciler, transaction_storage, make_transaction
    ):
        """Test that client ids and timestamps are kept for new items."""
        created = datetime(2024, 1, 3, 8, 0)
        mapping = reconciler.batch_sync([
            make_transaction(id="c1", created_at=created, updated_at=created),
        ])

        assert mapping == {"c1": "c1"}
        stored = transaction_storage.find_by_id("c1")
        assert stored.created_at == created
        assert stored.updated_at == created

    def test_existing_ids_go_through_last_write_wins(
        self, reconciler, transaction_storage, sync_log_storage, make_transaction, now
    ):
        """Test that known ids are merged by last-write-wins."""
        reconciler.add(make_transaction(id="t1"))
        mapping = reconciler.batch_sync([
            make_transaction(id="t1", amount=Decimal("50"), updated_at=now - timedelta(days=1)),
            make_transaction(id="t2"),
        ])

        assert mapping == {"t1": "t1", "t2": "t2"}
        assert transaction_storage.find_by_id("t1").amount == Decimal("10")
        assert _actions(sync_log_storage) == [SyncAction.ADD, SyncAction.ADD]

    def test_input_order_is_applied(self, reconciler, transaction_storage, make_transaction, now):
        """Test that items are applied in input order."""
        reconciler.batch_sync([
            make_transaction(id="t1", amount=Decimal("1"), updated_at=now),
            make_transaction(id="t1", amount=Decimal("2"), updated_at=now + timedelta(minutes=5)),
        ])
        assert transaction_storage.find_by_id("t1").amount == Decimal("2")

    def test_only_updated_at_from_client_survives_reload(self, journal, make_transaction):
        """Test that an item carrying only updated_at reloads cleanly."""
        files = InMemoryFileStorage()
        reconciler = TransactionReconciler(
            JsonTransactionStorage(files), journal, clock=lambda: datetime(2024, 6, 1)
        )
        reconciler.batch_sync([make_transaction(id="c1", updated_at=datetime(2024, 1, 1))])

        stored = JsonTransactionStorage(files).find_by_id("c1")
        assert stored.created_at == datetime(2024, 1, 1)
        assert stored.updated_at == datetime(2024, 1, 1)

    def test_failed_items_left_out(self, journal, make_transaction):
        """Test that failed items are missing from the id mapping."""
        reconciler = TransactionReconciler(FailingSaveStorage(), journal)
        assert reconciler.batch_sync([make_transaction(id="t1")]) == {}


class TestOrderedStamps:
    """Test filling in missing client timestamps."""

    NOW = datetime(2024, 6, 1)

    def test_both_missing_use_now(self):
        """Test that both timestamps default to now."""
        assert ordered_stamps(None, None, self.NOW) == (self.NOW, self.NOW)

    def test_missing_created_takes_earlier_updated(self):
        """Test that created_at never lands after the client's updated_at."""
        earlier = datetime(2024, 1, 1)
        assert ordered_stamps(None, earlier, self.NOW) == (earlier, earlier)

    def test_missing_updated_after_future_created(self):
        """Test that a future created_at pulls updated_at up with it."""
        later = datetime(2024, 7, 1)
        assert ordered_stamps(later, None, self.NOW) == (later, later)

    def test_client_values_kept(self):
        """Test that ordered client timestamps pass through unchanged."""
        created, updated = datetime(2024, 1, 1), datetime(2024, 2, 1)
        assert ordered_stamps(created, updated, self.NOW) == (created, updated)


class TestBulkAndChanges:
    """Test bulk clearing and change listing."""

    def test_clear_all_logs_delete_for_owned(
        self, reconciler, transaction_storage, sync_log_storage, make_transaction
    ):
        """Test that clear_all journals deletes for owned records only."""
        reconciler.add(make_transaction(id="t1"))
        reconciler.add(make_transaction(id="t2", user_id=None))

        assert reconciler.clear_all() == 2
        assert transaction_storage.count() == 0
        assert _actions(sync_log_storage) == [SyncAction.ADD, SyncAction.DELETE]

    def test_changes_since(self, reconciler, make_transaction):
        """Test listing changes after a version."""
        reconciler.add(make_transaction(id="t1"))
        reconciler.delete("t1")

        changes = reconciler.changes_since("u1", after_version=1)
        assert [c.action for c in changes] == [SyncAction.DELETE]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
