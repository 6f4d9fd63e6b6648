"""
Composable transaction filter rules.

A FilterRule wraps a predicate. Rules combine with and_/or_/negate (or the
&, |, ~ operators), so a caller can build a query such as
"expenses in groceries this month mentioning 'market'" from small pieces.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from pocketbook.models.transaction import Transaction, TransactionType


class FilterRule:
    """A named predicate over transactions."""

    def __init__(self, predicate: Callable[[Transaction], bool], name: str = "rule"):
        self._predicate = predicate
        self.name = name

    def test(self, transaction: Transaction) -> bool:
        return bool(self._predicate(transaction))

    __call__ = test

    def and_(self, other: "FilterRule") -> "FilterRule":
        return FilterRule(
            lambda t: self.test(t) and other.test(t),
            f"({self.name} and {other.name})",
        )

    def or_(self, other: "FilterRule") -> "FilterRule":
        return FilterRule(
            lambda t: self.test(t) or other.test(t),
            f"({self.name} or {other.name})",
        )

    def negate(self) -> "FilterRule":
        return FilterRule(lambda t: not self.test(t), f"not {self.name}")

    __and__ = and_
    __or__ = or_
    __invert__ = negate

    def __repr__(self) -> str:
        return f"FilterRule({self.name})"

    # =========================================================================
    # FACTORIES
    # =========================================================================

    @classmethod
    def by_type(cls, transaction_type: TransactionType) -> "FilterRule":
        return cls(lambda t: t.type == transaction_type, f"type={transaction_type.value}")

    @classmethod
    def by_keyword(cls, keyword: str) -> "FilterRule":
        """Case-insensitive match in description or tags."""
        needle = (keyword or "").strip().lower()

        def matches(t: Transaction) -> bool:
            if not needle:
                return True
            haystacks = (t.description or "", t.tags or "")
            return any(needle in h.lower() for h in haystacks)

        return cls(matches, f"keyword={needle!r}")

    @classmethod
    def by_category(cls, category_id: Optional[str]) -> "FilterRule":
        return cls(lambda t: t.category_id == category_id, f"category={category_id}")

    @classmethod
    def by_user(cls, user_id: Optional[str]) -> "FilterRule":
        return cls(lambda t: t.user_id == user_id, f"user={user_id}")

    @classmethod
    def by_date_range(
        cls,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> "FilterRule":
        """Timestamp within [start, end]; open-ended when a bound is None."""

        def matches(t: Transaction) -> bool:
            if t.timestamp is None:
                return False
            if start is not None and t.timestamp < start:
                return False
            if end is not None and t.timestamp > end:
                return False
            return True

        return cls(matches, f"date in [{start}, {end}]")

    @classmethod
    def by_amount_range(
        cls,
        minimum: Optional[Decimal] = None,
        maximum: Optional[Decimal] = None,
    ) -> "FilterRule":
        def matches(t: Transaction) -> bool:
            if minimum is not None and t.amount < minimum:
                return False
            if maximum is not None and t.amount > maximum:
                return False
            return True

        return cls(matches, f"amount in [{minimum}, {maximum}]")
