"""
Budget Statistics Engine

Period-based accounting: rolling statistics for a budget over its own
[start_date, end_date] period, which need not line up with calendar months.

Spend that counts toward a budget (same filter for the whole period and the
trailing windows):
- EXPENSE transactions only
- Same user as the budget
- Same category as the budget. The category must be non-null, so total
  budgets (no category) currently always report zero spend here.
- Effective date inside the window, inclusive

Calendar-month accounting lives separately in budgeting.monthly.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional

import structlog

from pocketbook.models.budget import Budget, BudgetStats
from pocketbook.models.transaction import Transaction
from pocketbook.budgeting.store import BudgetStore
from pocketbook.services.storage import StorageError, TransactionStorageInterface

TRAILING_WEEK_DAYS = 7
TRAILING_MONTH_DAYS = 30

logger = structlog.get_logger(__name__)


def _counts_toward(budget: Budget, transaction: Transaction) -> bool:
    return (
        transaction.is_expense
        and budget.user_id == transaction.user_id
        and budget.category_id is not None
        and budget.category_id == transaction.category_id
    )


def amount_spent_in_range(
    budget: Budget,
    transactions: Iterable[Transaction],
    start: date,
    end: date,
) -> Decimal:
    """Sum of the budget's qualifying expenses dated within [start, end]."""
    total = Decimal("0")
    for transaction in transactions:
        day = transaction.effective_date
        if day is None or not _counts_toward(budget, transaction):
            continue
        if start <= day <= end:
            total += transaction.amount
    return total


def amount_spent_for_budget(
    budget: Budget,
    transactions: Iterable[Transaction],
) -> Decimal:
    """Sum of the budget's qualifying expenses over its whole period."""
    start, end = budget.start_date, budget.end_date
    if start is None or end is None:
        return Decimal("0")
    return amount_spent_in_range(budget, transactions, start, end)


class BudgetStatisticsEngine:
    """
    Computes BudgetStats and answers affordability checks.

    `clock` returns "today"; inject a fixed clock for deterministic results.
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        budget_store: BudgetStore,
        clock: Callable[[], date] = date.today,
    ):
        self._transactions = transaction_storage
        self._budgets = budget_store
        self._clock = clock

    def _all_transactions(self) -> list[Transaction]:
        try:
            return self._transactions.find_all()
        except StorageError as e:
            logger.error("transaction_read_failed", error=str(e))
            return []

    def calculate_stats(
        self,
        budget: Budget,
        transactions: Optional[Iterable[Transaction]] = None,
    ) -> BudgetStats:
        """
        Compute statistics for a budget as of today.

        Args:
            budget: The budget to evaluate
            transactions: Transactions to consider. Read from storage if None.

        Returns:
            BudgetStats. If the budget has no start date only `budget` is set.
        """
        stats = BudgetStats(budget=budget)
        if budget.start_date is None:
            return stats

        all_transactions = (
            list(transactions) if transactions is not None else self._all_transactions()
        )

        today = self._clock()
        end = budget.end_date
        last = today if end is None else min(today, end)

        days_elapsed = max(1, (last - budget.start_date).days + 1)
        total_days = max(1, budget.total_days)
        amount_spent = amount_spent_for_budget(budget, all_transactions)

        stats.days_elapsed = days_elapsed
        stats.total_days = total_days
        stats.amount_spent = amount_spent
        stats.remaining = budget.amount - amount_spent
        stats.avg_per_day_budget = budget.amount / total_days
        stats.avg_per_day_actual = amount_spent / days_elapsed
        stats.projected_total = stats.avg_per_day_actual * total_days
        stats.projected_remaining = budget.amount - stats.projected_total
        stats.will_be_overspent = stats.projected_total > budget.amount

        if days_elapsed >= TRAILING_WEEK_DAYS:
            stats.last_7_days_spent = amount_spent_in_range(
                budget,
                all_transactions,
                today - timedelta(days=TRAILING_WEEK_DAYS - 1),
                today,
            )
        if days_elapsed >= TRAILING_MONTH_DAYS:
            stats.last_30_days_spent = amount_spent_in_range(
                budget,
                all_transactions,
                today - timedelta(days=TRAILING_MONTH_DAYS - 1),
                today,
            )
        return stats

    def can_consume(self, transaction: Optional[Transaction]) -> bool:
        """
        Check whether an expense fits in the budgets active on its date.

        Income, uncategorized expenses and expenses with no active budget are
        unconstrained. With several overlapping active budgets, one budget with
        enough remaining is enough.
        """
        if transaction is None or not transaction.is_expense:
            return True
        if not transaction.category_id or not transaction.category_id.strip():
            return True

        at = transaction.effective_date or self._clock()
        actives = self._budgets.find_active_budgets(
            transaction.user_id,
            transaction.category_id,
            at,
        )
        if not actives:
            return True

        all_transactions = self._all_transactions()
        for budget in actives:
            stats = self.calculate_stats(budget, all_transactions)
            if stats.remaining >= transaction.amount:
                return True

        logger.info(
            "expense_exceeds_budget",
            user_id=transaction.user_id,
            category_id=transaction.category_id,
            amount=str(transaction.amount),
            active_budgets=len(actives),
        )
        return False
