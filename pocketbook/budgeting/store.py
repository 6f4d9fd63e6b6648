"""
Budget Store

Owns the in-memory budget collection and its persisted snapshot.

DESIGN DECISION: Every mutation persists the FULL collection as one JSON
array document. There are no partial writes; the file backend replaces the
document atomically. One re-entrant lock spans read-modify-write-persist.

Persistence failures never escape the store. Each load/persist produces an
Ok/Err result that is logged and kept on the store
(`last_load_result`, `last_persist_result`):
- A failed or corrupt load leaves the collection empty
- A failed persist leaves the in-memory change in place; the next
  successful persist writes it out
"""

import threading
from datetime import date
from decimal import Decimal
from typing import Callable, Optional
from uuid import uuid4

import structlog
from pydantic import TypeAdapter, ValidationError

from pocketbook.models.base import utcnow
from pocketbook.models.budget import Budget
from pocketbook.services.storage import (
    Err,
    FileStorageInterface,
    Ok,
    Result,
    StorageError,
    StorageErrorKind,
)

BUDGETS_FILE = "budgets.json"

_BUDGET_LIST = TypeAdapter(list[Budget])


class BudgetStore:
    """Repository of budgets backed by whole-document file persistence."""

    def __init__(
        self,
        file_storage: FileStorageInterface,
        file_name: str = BUDGETS_FILE,
        clock: Callable = utcnow,
    ):
        self._file_storage = file_storage
        self._file_name = file_name
        self._clock = clock
        self._lock = threading.RLock()
        self._budgets: list[Budget] = []
        self._logger = structlog.get_logger(__name__)

        self.last_load_result: Result = Ok([])
        self.last_persist_result: Optional[Result] = None
        self.load()

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def load(self) -> Result:
        """
        (Re)load the collection from the snapshot.

        Absent or blank documents yield an empty collection.
        """
        with self._lock:
            result = self._read_snapshot()
            self._budgets = result.value if result.is_ok else []
            self.last_load_result = result
        return result

    def _read_snapshot(self) -> Result:
        try:
            text = self._file_storage.read_file(self._file_name)
        except StorageError as e:
            self._logger.error("budget_load_failed", file=self._file_name, error=str(e))
            return Err(StorageErrorKind.READ_FAILED, str(e))

        if text is None or not text.strip():
            return Ok([])

        try:
            budgets = _BUDGET_LIST.validate_json(text)
        except ValidationError as e:
            self._logger.error("budget_snapshot_corrupt", file=self._file_name, error=str(e))
            return Err(StorageErrorKind.CORRUPT_DATA, str(e))

        self._logger.info("budgets_loaded", count=len(budgets))
        return Ok(budgets)

    def _persist(self) -> Result:
        payload = _BUDGET_LIST.dump_json(self._budgets, by_alias=True).decode("utf-8")
        try:
            self._file_storage.write_file(self._file_name, payload)
            result: Result = Ok(None)
        except StorageError as e:
            self._logger.error("budget_save_failed", file=self._file_name, error=str(e))
            result = Err(StorageErrorKind.WRITE_FAILED, str(e))
        self.last_persist_result = result
        return result

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_budget(self, budget: Budget) -> Budget:
        """Add a budget, assigning an id if it has none."""
        with self._lock:
            if not budget.id:
                budget.id = str(uuid4())
            now = self._clock()
            budget.created_at = budget.created_at or now
            budget.updated_at = now
            self._budgets.append(budget)
            self._persist()
        return budget

    def delete_budget(self, budget_id: str) -> bool:
        """
        Remove a budget.

        Returns:
            True if removed. Unknown ids return False without touching the
            snapshot.
        """
        with self._lock:
            remaining = [b for b in self._budgets if b.id != budget_id]
            if len(remaining) == len(self._budgets):
                return False
            self._budgets = remaining
            self._persist()
        return True

    def update_budget(self, budget_id: str, updated: Budget) -> Optional[Budget]:
        """
        Replace a budget in place, keeping its id.

        Returns:
            The stored budget, or None if the id is unknown
        """
        with self._lock:
            for index, budget in enumerate(self._budgets):
                if budget.id == budget_id:
                    updated.id = budget_id
                    updated.created_at = budget.created_at
                    updated.updated_at = self._clock()
                    self._budgets[index] = updated
                    self._persist()
                    return updated
        return None

    def set_monthly_budget(
        self,
        user_id: str,
        category_id: Optional[str],
        amount: Decimal,
        year: int,
        month: int,
    ) -> Budget:
        """
        Upsert the monthly budget for (user, category-or-total, year, month).

        An existing match has its amount updated in place; otherwise a new
        budget is created.
        """
        with self._lock:
            existing = self.find_monthly_budget(user_id, category_id, year, month)
            if existing is not None:
                existing.amount = amount
                existing.updated_at = self._clock()
                self._persist()
                return existing

            return self.add_budget(Budget(
                user_id=user_id,
                category_id=category_id,
                amount=amount,
                year=year,
                month=month,
            ))

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def list_budgets(self) -> list[Budget]:
        with self._lock:
            return list(self._budgets)

    def get_budget_by_id(self, budget_id: str) -> Optional[Budget]:
        with self._lock:
            return next((b for b in self._budgets if b.id == budget_id), None)

    def get_total_budget(self, user_id: str, year: int, month: int) -> Optional[Budget]:
        """The user's total (uncategorized) budget for a month."""
        with self._lock:
            return next(
                (
                    b for b in self._budgets
                    if b.user_id == user_id
                    and b.year == year and b.month == month
                    and b.is_total_budget
                ),
                None,
            )

    def get_category_budget(
        self,
        user_id: str,
        category_id: str,
        year: int,
        month: int,
    ) -> Optional[Budget]:
        """The user's budget for one category in a month."""
        with self._lock:
            return next(
                (
                    b for b in self._budgets
                    if b.user_id == user_id
                    and b.category_id is not None and b.category_id == category_id
                    and b.year == year and b.month == month
                ),
                None,
            )

    def get_budgets_by_user_id(self, user_id: str) -> list[Budget]:
        with self._lock:
            return [b for b in self._budgets if b.user_id == user_id]

    def get_budgets_by_month(self, user_id: str, year: int, month: int) -> list[Budget]:
        with self._lock:
            return [
                b for b in self._budgets
                if b.user_id == user_id and b.year == year and b.month == month
            ]

    def find_active_budgets(
        self,
        user_id: str,
        category_id: Optional[str],
        at_date: Optional[date] = None,
    ) -> list[Budget]:
        """
        Budgets whose [start, end] period contains at_date (default today).

        A None category_id matches budgets of any category. Budgets without a
        computable period are never active.
        """
        effective_at = at_date or date.today()
        with self._lock:
            return [
                b for b in self._budgets
                if b.user_id == user_id
                and (category_id is None or b.category_id == category_id)
                and b.covers(effective_at)
            ]

    def find_monthly_budget(
        self,
        user_id: str,
        category_id: Optional[str],
        year: int,
        month: int,
    ) -> Optional[Budget]:
        """Total budget when category_id is None, else the category budget."""
        if category_id is None:
            return self.get_total_budget(user_id, year, month)
        return self.get_category_budget(user_id, category_id, year, month)
