"""Budget accounting package."""

from pocketbook.budgeting.store import BUDGETS_FILE, BudgetStore
from pocketbook.budgeting.statistics import (
    TRAILING_MONTH_DAYS,
    TRAILING_WEEK_DAYS,
    BudgetStatisticsEngine,
    amount_spent_for_budget,
    amount_spent_in_range,
)
from pocketbook.budgeting.monthly import MonthlyBudgetTracker

__all__ = [
    "BUDGETS_FILE",
    "BudgetStatisticsEngine",
    "BudgetStore",
    "MonthlyBudgetTracker",
    "TRAILING_MONTH_DAYS",
    "TRAILING_WEEK_DAYS",
    "amount_spent_for_budget",
    "amount_spent_in_range",
]
