"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Ships in-memory and local-file backends; designed to be swappable.
"""

from pocketbook.services.storage.interface import (
    CorruptDataError,
    FileStorageInterface,
    StorageError,
    SyncLogStorageInterface,
    TransactionStorageInterface,
)
from pocketbook.services.storage.result import Err, Ok, Result, StorageErrorKind
from pocketbook.services.storage.memory import (
    InMemoryFileStorage,
    InMemorySyncLogStorage,
    InMemoryTransactionStorage,
)
from pocketbook.services.storage.local_files import (
    JsonLinesSyncLogStorage,
    JsonTransactionStorage,
    LocalFileStorage,
)

__all__ = [
    # Interfaces
    "FileStorageInterface",
    "SyncLogStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "CorruptDataError",
    "StorageError",
    # Results
    "Err",
    "Ok",
    "Result",
    "StorageErrorKind",
    # In-memory implementation
    "InMemoryFileStorage",
    "InMemorySyncLogStorage",
    "InMemoryTransactionStorage",
    # Local file implementation
    "JsonLinesSyncLogStorage",
    "JsonTransactionStorage",
    "LocalFileStorage",
]
