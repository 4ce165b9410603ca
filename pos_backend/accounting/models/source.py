# accounting/models/source.py

"""
======================================================
PATH: accounting/models/source.py
======================================================
JOURNAL SOURCE REFERENCE

A journal entry points back to the business object that produced it.
The origin is a closed set of kinds, each carrying a stable identifier.

Stored on JournalEntry as (source_type, source_id).
"""

from __future__ import annotations

from dataclasses import dataclass

from django.db import models


class SourceKind(models.TextChoices):
    ORDER = "order", "Order"
    EXPENSE = "expense", "Expense"
    PURCHASE_ORDER = "purchase_order", "Purchase order"
    REFUND = "refund", "Refund"
    RECURRING = "recurring", "Recurring template"
    JOURNAL_ENTRY = "journal_entry", "Journal entry"
    FISCAL_YEAR = "fiscal_year", "Fiscal year"


@dataclass(frozen=True)
class SourceRef:
    kind: SourceKind
    id: str

    def __post_init__(self):
        kind = SourceKind(self.kind)
        ident = str(self.id).strip()
        if not ident:
            raise ValueError("SourceRef id is required")
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "id", ident)

    @property
    def idempotency_key(self) -> str:
        return f"{self.kind.value}:{self.id}"

    def __str__(self):
        return self.idempotency_key
