# accounting/models/__init__.py

"""
ACCOUNTING MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Do NOT import services from models anywhere (models must stay pure).
"""

from accounting.models.account import Account
from accounting.models.fiscal_year import FiscalYear
from accounting.models.journal import JournalEntry, JournalLine
from accounting.models.recurring import RecurringJournalEntry, RecurringJournalEntryLine
from accounting.models.sequence import EntryNumberSequence
from accounting.models.source import SourceKind, SourceRef

__all__ = [
    "Account",
    "FiscalYear",
    "JournalEntry",
    "JournalLine",
    "EntryNumberSequence",
    "RecurringJournalEntry",
    "RecurringJournalEntryLine",
    "SourceKind",
    "SourceRef",
]
