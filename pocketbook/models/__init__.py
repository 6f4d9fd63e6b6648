"""
Data Models Package

This package contains all Pydantic models used by the Pocketbook core,
plus the pure period arithmetic that budget periods are built on.
"""

from pocketbook.models.period import (
    PeriodUnit,
    calendar_month_bounds,
    end_date,
    total_days,
)
from pocketbook.models.base import CamelModel, to_naive_utc, utcnow
from pocketbook.models.transaction import Transaction, TransactionType
from pocketbook.models.budget import Budget, BudgetStats
from pocketbook.models.sync import Resolution, SyncAction, SyncLogEntry

__all__ = [
    # Period arithmetic
    "PeriodUnit",
    "calendar_month_bounds",
    "end_date",
    "total_days",
    # Base
    "CamelModel",
    "to_naive_utc",
    "utcnow",
    # Transaction models
    "Transaction",
    "TransactionType",
    # Budget models
    "Budget",
    "BudgetStats",
    # Sync models
    "Resolution",
    "SyncAction",
    "SyncLogEntry",
]
