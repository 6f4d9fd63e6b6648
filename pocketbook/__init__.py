"""
Pocketbook - Source Package

Offline synchronization and budget-accounting core for a personal
finance tracker.

DESIGN PRINCIPLES:
1. Last write wins, and every accepted write is versioned
2. The sync log is append-only
3. Budget snapshots are written whole or not at all
4. Failures are reported through return values, never raised past a service
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Pocketbook Team"
