"""Transaction sync package."""

from pocketbook.sync.policy import resolve
from pocketbook.sync.reconciler import TransactionReconciler, new_transaction_id

__all__ = ["TransactionReconciler", "new_transaction_id", "resolve"]
