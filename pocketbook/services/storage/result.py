"""
Explicit persistence results.

Stores that must never raise past their boundary report persistence
outcomes as `Ok(value)` or `Err(kind, message)` instead of swallowing the
failure.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class StorageErrorKind(str, Enum):
    """Why a persistence operation failed."""
    READ_FAILED = "read_failed"
    WRITE_FAILED = "write_failed"
    CORRUPT_DATA = "corrupt_data"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful persistence outcome."""
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed persistence outcome."""
    kind: StorageErrorKind
    message: str = ""

    @property
    def is_ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]
