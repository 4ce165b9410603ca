# accounting/services/entry_numbers.py

"""
======================================================
PATH: accounting/services/entry_numbers.py
======================================================
ENTRY NUMBER GENERATOR

Format: <PREFIX>-<YYYY>-<NNNNNN>   e.g. JE-2026-000042

Numbers come from a per-(prefix, year) counter row locked with
SELECT ... FOR UPDATE. The lock is held until the caller's transaction
ends, so concurrent builders are serialized on the counter and a rolled
back build releases its number together with its entry.
"""

from __future__ import annotations

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from accounting.models.sequence import EntryNumberSequence
from accounting.services.exceptions import JournalEntryCreationError

NUMBER_WIDTH = 6


def _default_prefix() -> str:
    prefix = (getattr(settings, "ACCOUNTING_ENTRY_NUMBER_PREFIX", "") or "JE").strip()
    return prefix or "JE"


def format_entry_number(*, prefix: str, year: int, value: int) -> str:
    return f"{prefix}-{year}-{value:0{NUMBER_WIDTH}d}"


def generate_entry_number(*, prefix: str | None = None, year: int | None = None) -> str:
    if not transaction.get_connection().in_atomic_block:
        raise JournalEntryCreationError(
            "Entry numbers must be allocated inside the entry's transaction"
        )

    prefix = prefix or _default_prefix()
    year = year or timezone.localdate().year

    sequence, _ = EntryNumberSequence.objects.select_for_update().get_or_create(
        prefix=prefix,
        year=year,
    )
    sequence.last_value += 1
    sequence.save(update_fields=["last_value"])

    return format_entry_number(prefix=prefix, year=year, value=sequence.last_value)
