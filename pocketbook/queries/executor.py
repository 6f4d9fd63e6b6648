"""
Transaction Query Service

Read-side access to transactions for the controller layer. Queries are
deterministic filters over what storage holds; nothing is estimated.

Storage failures are logged and reported as "no data" (empty list, None,
zero) rather than raised.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Union

import structlog

from pocketbook.models.transaction import Transaction, TransactionType
from pocketbook.queries.filters import FilterRule
from pocketbook.services.storage import StorageError, TransactionStorageInterface


class TransactionQueryService:
    """
    Executes transaction lookups and filter queries against storage.

    GUARANTEES:
    - Only returns real data from storage
    - Clear empty result if nothing matches
    """

    def __init__(self, storage: TransactionStorageInterface):
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    def _safe(self, operation: str, call, default):
        try:
            return call()
        except StorageError as e:
            self._logger.error("query_failed", operation=operation, error=str(e))
            return default

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_transaction_by_id(self, transaction_id: str) -> Optional[Transaction]:
        return self._safe("by_id", lambda: self._storage.find_by_id(transaction_id), None)

    def get_all_transactions(self) -> list[Transaction]:
        return self._safe("all", self._storage.find_all, [])

    def get_transactions_by_user_id(self, user_id: str) -> list[Transaction]:
        """The user's transactions plus legacy public records."""
        return self._safe(
            "by_user",
            lambda: self._storage.find_visible_for_user(user_id),
            [],
        )

    def get_transactions_by_date_range(
        self,
        start: datetime,
        end: datetime,
    ) -> list[Transaction]:
        return self._safe(
            "by_date_range",
            lambda: self._storage.find_by_date_range(start, end),
            [],
        )

    def get_transactions_by_category(self, category_id: str) -> list[Transaction]:
        return self._safe(
            "by_category",
            lambda: self._storage.find_by_category(category_id),
            [],
        )

    def get_transaction_count(self) -> int:
        return self._safe("count", self._storage.count, 0)

    # =========================================================================
    # FILTER QUERIES
    # =========================================================================

    def filter_transactions(
        self,
        rules: Union[FilterRule, list[FilterRule], None] = None,
    ) -> list[Transaction]:
        """
        Filter all transactions.

        Args:
            rules: A single rule, a list of rules combined with AND, or None
                   (or an empty list) for every transaction.
        """
        transactions = self.get_all_transactions()
        if rules is None:
            return transactions

        if isinstance(rules, FilterRule):
            combined = rules
        else:
            if not rules:
                return transactions
            combined = rules[0]
            for rule in rules[1:]:
                combined = combined.and_(rule)

        results = [t for t in transactions if combined.test(t)]
        self._logger.debug("query_executed", rule=combined.name, result_count=len(results))
        return results

    def get_transactions_by_type(self, transaction_type: TransactionType) -> list[Transaction]:
        return self.filter_transactions(FilterRule.by_type(transaction_type))

    def search_transactions(self, keyword: str) -> list[Transaction]:
        """Case-insensitive keyword search over description and tags."""
        return self.filter_transactions(FilterRule.by_keyword(keyword))

    # =========================================================================
    # AGGREGATES
    # =========================================================================

    @staticmethod
    def calculate_total_amount(transactions: Iterable[Transaction]) -> Decimal:
        """Net amount: income minus expenses."""
        return sum((t.signed_amount for t in transactions), Decimal("0"))
