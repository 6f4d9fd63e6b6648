"""
Transaction Model

A single income or expense entry. Transactions arrive from clients (possibly
recorded offline) and are reconciled against server state by the sync layer.

Records are immutable: the reconciler derives merged copies with
`model_copy(update=...)` instead of mutating what storage handed out.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, ConfigDict, Field, field_validator, model_validator

from pocketbook.models.base import CamelModel, to_naive_utc


class TransactionType(str, Enum):
    """Direction of money flow."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Transaction(CamelModel):
    """
    An income/expense entry.

    A transaction with no user_id is a legacy public record: it is visible to
    every user and is never written to the sync log.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(
        default=None,
        description="Client- or server-assigned identifier"
    )
    user_id: Optional[str] = Field(
        default=None,
        description="Owning user (None for legacy public records)"
    )
    type: TransactionType = Field(
        ...,
        description="INCOME or EXPENSE"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Non-negative amount"
    )
    category_id: Optional[str] = Field(
        default=None,
        description="Spending category (None = uncategorized)"
    )
    description: Optional[str] = None
    tags: Optional[str] = None
    timestamp: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("timestamp", "date"),
        description="Effective date/time of the transaction"
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("timestamp", "created_at", "updated_at")
    @classmethod
    def normalize_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def validate_timestamps(self) -> "Transaction":
        """updated_at may not precede created_at."""
        if self.created_at and self.updated_at:
            if self.updated_at < self.created_at:
                raise ValueError("updated_at cannot be before created_at")
        return self

    @property
    def effective_date(self) -> Optional[date]:
        return self.timestamp.date() if self.timestamp else None

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    @property
    def signed_amount(self) -> Decimal:
        """Amount with expenses negated."""
        return self.amount if self.type == TransactionType.INCOME else -self.amount
