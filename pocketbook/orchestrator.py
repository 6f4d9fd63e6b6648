"""
Application wiring for Pocketbook

This module ties together the storage backends, the sync journal, the
reconciler, budget persistence and both accounting services, so a
controller layer only ever asks for one AppComponents bundle.

DESIGN DECISION: Components are plain objects assembled here, never
module-level singletons. Tests build their own bundle (in_memory=True) and
two bundles never share state.
"""

from typing import NamedTuple, Optional

import structlog

from pocketbook.budgeting import BudgetStatisticsEngine, BudgetStore, MonthlyBudgetTracker
from pocketbook.config import Settings, configure_logging, get_settings
from pocketbook.queries import TransactionQueryService
from pocketbook.services.storage import (
    FileStorageInterface,
    InMemoryFileStorage,
    InMemorySyncLogStorage,
    InMemoryTransactionStorage,
    JsonLinesSyncLogStorage,
    JsonTransactionStorage,
    LocalFileStorage,
    SyncLogStorageInterface,
    TransactionStorageInterface,
)
from pocketbook.sync import TransactionReconciler
from pocketbook.synclog import SyncJournal

logger = structlog.get_logger(__name__)


class AppComponents(NamedTuple):
    """Everything a controller layer needs, already connected."""

    transaction_storage: TransactionStorageInterface
    sync_log_storage: SyncLogStorageInterface
    file_storage: FileStorageInterface
    journal: SyncJournal
    reconciler: TransactionReconciler
    budget_store: BudgetStore
    statistics: BudgetStatisticsEngine
    monthly: MonthlyBudgetTracker
    queries: TransactionQueryService


def create_app_components(
    settings: Optional[Settings] = None,
    in_memory: bool = False,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Application settings. Loaded from the environment if None.
        in_memory: Use volatile in-memory backends instead of the data
                   directory. Intended for tests and demos.

    Returns:
        AppComponents with every service connected to the same storage.
    """
    settings = settings or get_settings()
    app_settings = settings.app
    storage_settings = settings.storage

    configure_logging(app_settings)

    if in_memory:
        file_storage: FileStorageInterface = InMemoryFileStorage()
        transaction_storage: TransactionStorageInterface = InMemoryTransactionStorage()
        sync_log_storage: SyncLogStorageInterface = InMemorySyncLogStorage()
    else:
        file_storage = LocalFileStorage(
            storage_settings.data_dir,
            write_attempts=storage_settings.write_retry_attempts,
        )
        transaction_storage = JsonTransactionStorage(
            file_storage,
            file_name=storage_settings.transactions_file,
        )
        sync_log_storage = JsonLinesSyncLogStorage(
            storage_settings.sync_log_path,
            write_attempts=storage_settings.write_retry_attempts,
        )

    journal = SyncJournal(sync_log_storage)
    reconciler = TransactionReconciler(transaction_storage, journal)

    budget_store = BudgetStore(file_storage, file_name=storage_settings.budgets_file)
    load_result = budget_store.last_load_result
    if not load_result.is_ok:
        logger.warning(
            "budgets_not_loaded",
            kind=load_result.kind.value,
            message=load_result.message,
        )

    statistics = BudgetStatisticsEngine(transaction_storage, budget_store)
    monthly = MonthlyBudgetTracker(transaction_storage, budget_store)
    queries = TransactionQueryService(transaction_storage)

    logger.info(
        "app_components_created",
        in_memory=in_memory,
        environment=app_settings.app_environment,
        data_dir=None if in_memory else str(storage_settings.data_dir),
    )

    return AppComponents(
        transaction_storage=transaction_storage,
        sync_log_storage=sync_log_storage,
        file_storage=file_storage,
        journal=journal,
        reconciler=reconciler,
        budget_store=budget_store,
        statistics=statistics,
        monthly=monthly,
        queries=queries,
    )
