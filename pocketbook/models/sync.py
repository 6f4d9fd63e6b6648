"""
Sync Log Models

Every accepted mutation of a user-owned transaction produces one
SyncLogEntry. Entries are append-only: never modified, never removed.

Versions are per user, start at 1 and increase by exactly one per logged
mutation. Devices catch up by requesting every entry above the last version
they have seen.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field

from pocketbook.models.base import CamelModel, utcnow


class SyncAction(str, Enum):
    """Kind of mutation recorded in the sync log."""
    ADD = "ADD"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Resolution(str, Enum):
    """Outcome of last-write-wins conflict resolution."""
    KEEP = "KEEP"        # incoming write is stale, existing record stays
    REPLACE = "REPLACE"  # incoming write replaces the existing record


class SyncLogEntry(CamelModel):
    """
    A single sync log entry.

    `version` is None until the journal assigns it on append.
    """
    model_config = ConfigDict(frozen=True)

    entity_id: str = Field(
        ...,
        description="ID of the mutated entity"
    )
    user_id: str = Field(
        ...,
        description="Owning user"
    )
    action: SyncAction
    entity_type: str = Field(
        default="Transaction",
        description="Entity type tag"
    )
    payload: Optional[str] = Field(
        default=None,
        description="JSON snapshot of the entity (None for DELETE)"
    )
    version: Optional[int] = Field(
        default=None,
        ge=1,
        description="Per-user monotonically increasing version"
    )
    recorded_at: datetime = Field(
        default_factory=utcnow,
        description="When the entry was created (UTC)"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "entity_id": self.entity_id,
            "entity_type": self.entity_type,
            "user_id": self.user_id,
            "action": self.action.value,
            "version": self.version,
        }
