"""Services package."""

from pocketbook.services.storage import (
    CorruptDataError,
    Err,
    FileStorageInterface,
    InMemoryFileStorage,
    InMemorySyncLogStorage,
    InMemoryTransactionStorage,
    JsonLinesSyncLogStorage,
    JsonTransactionStorage,
    LocalFileStorage,
    Ok,
    Result,
    StorageError,
    StorageErrorKind,
    SyncLogStorageInterface,
    TransactionStorageInterface,
)

__all__ = [
    # Storage services
    "CorruptDataError",
    "Err",
    "FileStorageInterface",
    "InMemoryFileStorage",
    "InMemorySyncLogStorage",
    "InMemoryTransactionStorage",
    "JsonLinesSyncLogStorage",
    "JsonTransactionStorage",
    "LocalFileStorage",
    "Ok",
    "Result",
    "StorageError",
    "StorageErrorKind",
    "SyncLogStorageInterface",
    "TransactionStorageInterface",
]
