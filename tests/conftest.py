"""
Shared fixtures.

Every service gets in-memory backends and a fixed clock, so results do not
depend on the wall clock or the filesystem.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from pocketbook.budgeting import BudgetStatisticsEngine, BudgetStore, MonthlyBudgetTracker
from pocketbook.models import Budget, PeriodUnit, Transaction, TransactionType
from pocketbook.queries import TransactionQueryService
from pocketbook.services.storage import (
    InMemoryFileStorage,
    InMemorySyncLogStorage,
    InMemoryTransactionStorage,
)
from pocketbook.sync import TransactionReconciler
from pocketbook.synclog import SyncJournal


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 1, 15, 12, 0, 0)


@pytest.fixture
def today() -> date:
    return date(2024, 1, 15)


@pytest.fixture
def transaction_storage():
    return InMemoryTransactionStorage()


@pytest.fixture
def sync_log_storage():
    return InMemorySyncLogStorage()


@pytest.fixture
def file_storage():
    return InMemoryFileStorage()


@pytest.fixture
def journal(sync_log_storage):
    return SyncJournal(sync_log_storage)


@pytest.fixture
def reconciler(transaction_storage, journal, now):
    return TransactionReconciler(transaction_storage, journal, clock=lambda: now)


@pytest.fixture
def budget_store(file_storage, now):
    return BudgetStore(file_storage, clock=lambda: now)


@pytest.fixture
def statistics(transaction_storage, budget_store, today):
    return BudgetStatisticsEngine(transaction_storage, budget_store, clock=lambda: today)


@pytest.fixture
def monthly(transaction_storage, budget_store):
    return MonthlyBudgetTracker(transaction_storage, budget_store)


@pytest.fixture
def queries(transaction_storage):
    return TransactionQueryService(transaction_storage)


@pytest.fixture
def make_transaction():
    """Factory for an expense of 10 in 'food' owned by u1, with overrides."""
    def _make(**overrides) -> Transaction:
        fields = {
            "user_id": "u1",
            "type": TransactionType.EXPENSE,
            "amount": Decimal("10"),
            "category_id": "food",
            "timestamp": datetime(2024, 1, 10, 9, 0),
        }
        fields.update(overrides)
        return Transaction(**fields)
    return _make


@pytest.fixture
def make_budget():
    """Factory for a 30-day food budget of 300 for u1 starting 2024-01-01."""
    def _make(**overrides) -> Budget:
        fields = {
            "user_id": "u1",
            "category_id": "food",
            "amount": Decimal("300"),
            "year": 2024,
            "month": 1,
            "start_date": date(2024, 1, 1),
            "period_unit": PeriodUnit.DAYS,
            "period_count": 30,
        }
        fields.update(overrides)
        return Budget(**fields)
    return _make
