"""Sync log package."""

from pocketbook.synclog.journal import TRANSACTION_ENTITY, SyncJournal

__all__ = ["SyncJournal", "TRANSACTION_ENTITY"]
