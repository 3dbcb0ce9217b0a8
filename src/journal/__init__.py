"""
Append-only JSON-lines journal for reconciliation results.
"""

from journal.writer import JournalWriter

__all__ = ["JournalWriter"]
