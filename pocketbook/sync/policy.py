"""
Last-write-wins conflict resolution.

A pure function over two immutable records, independent of storage.
"""

from pocketbook.models.sync import Resolution
from pocketbook.models.transaction import Transaction


def resolve(existing: Transaction, incoming: Transaction) -> Resolution:
    """
    Decide whether an incoming write replaces the stored record.

    The incoming write is discarded (KEEP) only when both records carry an
    updated_at and the incoming one is strictly earlier. Ties, and writes
    where either timestamp is missing, replace the stored record.
    """
    if (
        incoming.updated_at is not None
        and existing.updated_at is not None
        and incoming.updated_at < existing.updated_at
    ):
        return Resolution.KEEP
    return Resolution.REPLACE
