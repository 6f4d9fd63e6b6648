"""
Calendar-month budget tracking.

A simpler accounting path kept separate from the period-based statistics
engine: it picks the single budget anchored to (user, category-or-total,
year, month) and compares it with spend over that calendar month.

Differences from period-based statistics:
- The window is always the calendar month, whatever the budget's period
- Spend includes legacy public records (no user) visible to the user
- A total budget (category None) counts expenses from every category
"""

from decimal import Decimal
from typing import Optional

import structlog

from pocketbook.budgeting.store import BudgetStore
from pocketbook.models.budget import Budget
from pocketbook.models.period import calendar_month_bounds
from pocketbook.services.storage import StorageError, TransactionStorageInterface

logger = structlog.get_logger(__name__)


class MonthlyBudgetTracker:
    """Over-budget checks against calendar-month budgets."""

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        budget_store: BudgetStore,
    ):
        self._transactions = transaction_storage
        self._budgets = budget_store

    def _budget_for(
        self,
        user_id: str,
        category_id: Optional[str],
        year: int,
        month: int,
    ) -> Optional[Budget]:
        return self._budgets.find_monthly_budget(user_id, category_id, year, month)

    def calculate_used_amount(
        self,
        user_id: str,
        category_id: Optional[str],
        year: int,
        month: int,
    ) -> Decimal:
        """Expenses visible to the user within the calendar month."""
        first, last = calendar_month_bounds(year, month)
        try:
            transactions = self._transactions.find_visible_for_user(user_id)
        except StorageError as e:
            logger.error("transaction_read_failed", user_id=user_id, error=str(e))
            return Decimal("0")

        total = Decimal("0")
        for transaction in transactions:
            day = transaction.effective_date
            if day is None or not first <= day <= last:
                continue
            if not transaction.is_expense:
                continue
            if category_id is not None and transaction.category_id != category_id:
                continue
            total += transaction.amount
        return total

    def is_over_budget(
        self,
        user_id: str,
        category_id: Optional[str],
        year: int,
        month: int,
    ) -> bool:
        """True when monthly spend exceeds the budget (False with no budget)."""
        budget = self._budget_for(user_id, category_id, year, month)
        if budget is None:
            return False
        used = self.calculate_used_amount(user_id, category_id, year, month)
        return used > budget.amount

    def get_over_budget_amount(
        self,
        user_id: str,
        category_id: Optional[str],
        year: int,
        month: int,
    ) -> Decimal:
        """How far monthly spend exceeds the budget; 0 if within or no budget."""
        budget = self._budget_for(user_id, category_id, year, month)
        if budget is None:
            return Decimal("0")
        used = self.calculate_used_amount(user_id, category_id, year, month)
        return max(Decimal("0"), used - budget.amount)

    def get_budget_usage_rate(
        self,
        user_id: str,
        category_id: Optional[str],
        year: int,
        month: int,
    ) -> Decimal:
        """Share of the budget used, capped at 1 (0 with no or zero budget)."""
        budget = self._budget_for(user_id, category_id, year, month)
        if budget is None or budget.amount == 0:
            return Decimal("0")
        used = self.calculate_used_amount(user_id, category_id, year, month)
        return min(Decimal("1"), used / budget.amount)
