"""Transaction query package."""

from pocketbook.queries.executor import TransactionQueryService
from pocketbook.queries.filters import FilterRule

__all__ = ["FilterRule", "TransactionQueryService"]
