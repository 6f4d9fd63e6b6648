"""
Budget Models

A Budget caps spending for one user, either for a single category or in
aggregate (no category), over a period. Budgets carry two anchors:

- year/month: the legacy monthly anchor used by calendar-month accounting
- start_date + period_unit + period_count: a flexible, non-calendar-aligned
  period used by the statistics engine

BudgetStats is computed on demand and never persisted.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from pydantic import ConfigDict, Field, field_validator

from pocketbook.models.base import CamelModel, to_naive_utc
from pocketbook.models.period import PeriodUnit
from pocketbook.models.period import end_date as period_end_date
from pocketbook.models.period import total_days as period_total_days


def _current_year() -> int:
    return date.today().year


def _current_month() -> int:
    return date.today().month


# =============================================================================
# BUDGET
# =============================================================================

class Budget(CamelModel):
    """
    A spending ceiling for a user and (optionally) a category.

    A budget without a start date has no computable period; period-based
    statistics are skipped for it.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique budget ID"
    )
    user_id: str = Field(
        ...,
        description="Owning user"
    )
    category_id: Optional[str] = Field(
        default=None,
        description="Category (None = total budget across categories)"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Budget ceiling"
    )

    # Legacy monthly anchor
    year: int = Field(default_factory=_current_year)
    month: int = Field(default_factory=_current_month, ge=1, le=12)

    # Flexible period
    start_date: Optional[date] = None
    period_unit: Optional[PeriodUnit] = None
    period_count: int = 1

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    @property
    def end_date(self) -> Optional[date]:
        """Inclusive last day of the budget period."""
        return period_end_date(self.start_date, self.period_unit, self.period_count)

    @property
    def total_days(self) -> int:
        """Inclusive length of the budget period in days (0 if not computable)."""
        return period_total_days(self.start_date, self.end_date)

    @property
    def is_total_budget(self) -> bool:
        """True when the budget is not restricted to a category."""
        return not self.category_id

    def covers(self, day: date) -> bool:
        """True if day falls within [start_date, end_date]."""
        end = self.end_date
        if self.start_date is None or end is None:
            return False
        return self.start_date <= day <= end


# =============================================================================
# COMPUTED STATISTICS
# =============================================================================

class BudgetStats(CamelModel):
    """
    Rolling statistics for one budget as of a given day.

    When the budget has no start date only `budget` is populated and every
    numeric field keeps its zero default.
    """

    budget: Budget
    days_elapsed: int = 0
    total_days: int = 0
    amount_spent: Decimal = Decimal("0")
    remaining: Decimal = Decimal("0")
    avg_per_day_budget: Decimal = Decimal("0")
    avg_per_day_actual: Decimal = Decimal("0")
    projected_total: Decimal = Decimal("0")
    projected_remaining: Decimal = Decimal("0")
    will_be_overspent: bool = False

    # Trailing windows ending today; present only once enough days elapsed
    last_7_days_spent: Optional[Decimal] = None
    last_30_days_spent: Optional[Decimal] = None

    @property
    def is_period_tracked(self) -> bool:
        return self.budget.start_date is not None
