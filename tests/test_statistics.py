"""
Tests for period-based budget statistics and affordability checks.

The engine clock is fixed to 2024-01-15 (see conftest).
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from pocketbook.budgeting import amount_spent_for_budget, amount_spent_in_range
from pocketbook.models import TransactionType


def _on(day: int, month: int = 1, year: int = 2024) -> datetime:
    return datetime(year, month, day, 9, 0)


@pytest.fixture
def half_spent(make_transaction):
    """150 of food spending for u1 spread over Jan 1-15."""
    return [
        make_transaction(id=f"t{day}", amount=Decimal("30"), timestamp=_on(day))
        for day in (1, 4, 8, 12, 15)
    ]


class TestCalculateStats:
    """Test period budget statistics."""

    def test_reference_example(self, statistics, make_budget, half_spent):
        """Test a half spent budget ten days in."""
        stats = statistics.calculate_stats(make_budget(), half_spent)

        assert stats.days_elapsed == 15
        assert stats.total_days == 30
        assert stats.amount_spent == Decimal("150")
        assert stats.remaining == Decimal("150")
        assert stats.avg_per_day_budget == Decimal("10")
        assert stats.avg_per_day_actual == Decimal("10")
        assert stats.projected_total == Decimal("300")
        assert stats.projected_remaining == Decimal("0")
        assert stats.will_be_overspent is False

    def test_trailing_windows(self, statistics, make_budget, half_spent):
        """Test the trailing 7 and 30 day averages."""
        stats = statistics.calculate_stats(make_budget(), half_spent)

        # Jan 9 - Jan 15
        assert stats.last_7_days_spent == Decimal("60")
        assert stats.last_30_days_spent is None

    def test_reads_storage_when_no_transactions_given(
        self, statistics, transaction_storage, make_budget, half_spent
    ):
        """Test that stored transactions are used by default."""
        for tx in half_spent:
            transaction_storage.save(tx)
        assert statistics.calculate_stats(make_budget()).amount_spent == Decimal("150")

    def test_projected_overspend(self, statistics, make_budget, make_transaction):
        """Test projected spend beyond the budget amount."""
        txs = [make_transaction(amount=Decimal("225"), timestamp=_on(2))]
        stats = statistics.calculate_stats(make_budget(), txs)

        assert stats.projected_total == Decimal("450")
        assert stats.will_be_overspent is True

    def test_only_qualifying_expenses_count(self, statistics, make_budget, make_transaction):
        """Test that only matching expenses inside the period count."""
        txs = [
            make_transaction(amount=Decimal("5"), timestamp=_on(3)),
            make_transaction(amount=Decimal("100"), type=TransactionType.INCOME),
            make_transaction(amount=Decimal("100"), user_id="u2"),
            make_transaction(amount=Decimal("100"), user_id=None),
            make_transaction(amount=Decimal("100"), category_id="rent"),
            make_transaction(amount=Decimal("100"), timestamp=_on(31, month=12, year=2023)),
            make_transaction(amount=Decimal("100"), timestamp=_on(31)),
            make_transaction(amount=Decimal("100"), timestamp=None),
        ]
        assert statistics.calculate_stats(make_budget(), txs).amount_spent == Decimal("5")

    def test_budget_without_start_date(self, statistics, make_budget, half_spent):
        """Test a budget with no start date."""
        budget = make_budget(start_date=None)
        stats = statistics.calculate_stats(budget, half_spent)

        assert stats.budget == budget
        assert not stats.is_period_tracked
        assert stats.amount_spent == Decimal("0")
        assert stats.total_days == 0

    def test_total_budget_reports_zero_spend(self, statistics, make_budget, half_spent):
        """Test that budgets without a category match nothing in period mode."""
        stats = statistics.calculate_stats(make_budget(category_id=None), half_spent)
        assert stats.amount_spent == Decimal("0")
        assert stats.remaining == Decimal("300")

    def test_finished_budget_stops_at_end_date(self, statistics, make_budget):
        """Test that elapsed days stop at the end date."""
        budget = make_budget(start_date=date(2023, 11, 1))
        stats = statistics.calculate_stats(budget, [])

        assert stats.days_elapsed == 30
        assert stats.last_7_days_spent == Decimal("0")
        assert stats.last_30_days_spent == Decimal("0")

    def test_invalid_period_uses_today(self, statistics, make_budget):
        """Test that a budget without a period measures up to today."""
        budget = make_budget(period_unit=None)
        stats = statistics.calculate_stats(budget, [])

        assert stats.days_elapsed == 15
        assert stats.total_days == 1

    def test_future_budget_counts_one_day(self, statistics, make_budget):
        """Test that a budget starting tomorrow counts one day."""
        stats = statistics.calculate_stats(make_budget(start_date=date(2024, 2, 1)), [])
        assert stats.days_elapsed == 1


class TestSpendHelpers:
    """Test spend summing helpers."""

    def test_amount_spent_in_range(self, make_budget, half_spent):
        """Test summing spend inside a date range."""
        total = amount_spent_in_range(make_budget(), half_spent, date(2024, 1, 4), date(2024, 1, 8))
        assert total == Decimal("60")

    def test_amount_spent_for_budget_without_period(self, make_budget, half_spent):
        """Test that a budget without a period has no spend."""
        assert amount_spent_for_budget(make_budget(period_count=0), half_spent) == Decimal("0")


class TestCanConsume:
    """Test budget admission checks."""

    def test_none_and_income_unconstrained(self, statistics, make_transaction):
        """Test that None and income always pass."""
        assert statistics.can_consume(None)
        assert statistics.can_consume(make_transaction(type=TransactionType.INCOME))

    @pytest.mark.parametrize("category", [None, "", "   "])
    def test_uncategorized_unconstrained(self, statistics, budget_store, make_budget, make_transaction, category):
        """Test that uncategorized expenses always pass."""
        budget_store.add_budget(make_budget(amount=Decimal("1")))
        assert statistics.can_consume(make_transaction(category_id=category, amount=Decimal("500")))

    def test_no_active_budget(self, statistics, budget_store, make_budget, make_transaction):
        """Test that an expense with no active budget passes."""
        budget_store.add_budget(make_budget(start_date=date(2023, 1, 1)))
        huge = make_transaction(amount=Decimal("1000000000"))
        assert statistics.can_consume(huge)

    def test_within_and_beyond_remaining(
        self, statistics, budget_store, transaction_storage, make_budget, make_transaction, half_spent
    ):
        """Test amounts inside and beyond what remains."""
        budget_store.add_budget(make_budget())
        for tx in half_spent:
            transaction_storage.save(tx)

        assert statistics.can_consume(make_transaction(amount=Decimal("150")))
        assert not statistics.can_consume(make_transaction(amount=Decimal("151")))

    def test_any_active_budget_is_enough(
        self, statistics, budget_store, transaction_storage, make_budget, make_transaction, half_spent
    ):
        """Test that one budget with room is enough."""
        budget_store.add_budget(make_budget(amount=Decimal("150")))
        budget_store.add_budget(make_budget(amount=Decimal("1000")))
        for tx in half_spent:
            transaction_storage.save(tx)

        assert statistics.can_consume(make_transaction(amount=Decimal("500")))

    def test_uses_transaction_date(self, statistics, budget_store, make_budget, make_transaction):
        """Test that the transaction date picks the active budgets."""
        budget_store.add_budget(make_budget(amount=Decimal("1")))
        later = make_transaction(amount=Decimal("50"), timestamp=_on(15, month=3))
        assert statistics.can_consume(later)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
