# accounting/services/ledger_service.py

"""
======================================================
PATH: accounting/services/ledger_service.py
======================================================
JOURNAL LIFECYCLE (POST / VOID / REVERSE)

  draft  --post_entry-->   posted
  draft  --void_entry-->   void
  posted --void_entry-->   void
  posted --reverse_entry-> posted (unchanged) + new offsetting posted entry

History is never deleted or rewritten:
- void only flips the status (lines stay, balances stop counting them)
- a posted entry inside a closed fiscal year cannot be voided
- reverse writes a NEW entry with debit/credit swapped per line
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from accounting.models.journal import JournalEntry
from accounting.models.source import SourceKind, SourceRef
from accounting.services.exceptions import JournalStateError, UnbalancedJournalError
from accounting.services.fiscal_years import resolve_for_posting
from accounting.services.journal_entry_service import (
    MIN_LINES,
    create_journal_entry,
    require_fiscal_year_default,
)

logger = logging.getLogger(__name__)


def _lock(entry: JournalEntry) -> JournalEntry:
    return JournalEntry.objects.select_for_update().get(pk=entry.pk)


@transaction.atomic
def post_entry(entry: JournalEntry, *, actor=None) -> JournalEntry:
    entry = _lock(entry)
    if not entry.is_draft:
        raise JournalStateError(
            f"Only draft entries can be posted ({entry.entry_number} is {entry.status})"
        )

    if entry.lines.count() < MIN_LINES:
        raise JournalStateError(
            f"Entry {entry.entry_number} needs at least {MIN_LINES} lines to be posted"
        )

    entry.recalculate_totals()
    if not entry.is_balanced():
        raise UnbalancedJournalError(
            f"Entry {entry.entry_number} is not balanced: "
            f"debits={entry.total_debit} credits={entry.total_credit}"
        )

    entry.fiscal_year = resolve_for_posting(
        entry.entry_date,
        require=require_fiscal_year_default(),
    )
    entry.status = JournalEntry.POSTED
    entry.posted_by_id = getattr(actor, "pk", None)
    entry.posted_at = timezone.now()
    entry.save()

    logger.info("Posted journal entry %s", entry.entry_number)
    return entry


@transaction.atomic
def void_entry(entry: JournalEntry, *, reason: str = "", actor=None) -> JournalEntry:
    entry = _lock(entry)
    if entry.is_void:
        raise JournalStateError(f"Entry {entry.entry_number} is already void")

    if entry.is_posted:
        # Closed years keep their posted history; correct with reverse_entry().
        resolve_for_posting(entry.entry_date)

    entry.status = JournalEntry.VOID
    entry.voided_by_id = getattr(actor, "pk", None)
    entry.voided_at = timezone.now()
    entry.void_reason = (reason or "").strip()
    entry.save()

    logger.info("Voided journal entry %s: %s", entry.entry_number, entry.void_reason or "-")
    return entry


@transaction.atomic
def reverse_entry(
    entry: JournalEntry,
    *,
    actor=None,
    entry_date=None,
    description: str | None = None,
) -> JournalEntry:
    """
    Post an offsetting entry for a posted entry.

    Each line is mirrored (debit <-> credit) in the same order. The original
    stays posted and untouched. A second reversal of the same entry raises
    IdempotencyError.
    """
    entry = _lock(entry)
    if not entry.is_posted:
        raise JournalStateError(
            f"Only posted entries can be reversed ({entry.entry_number} is {entry.status})"
        )

    lines = [
        {
            "account": line.account,
            "debit": line.credit,
            "credit": line.debit,
            "description": f"Reversal: {line.description}" if line.description else "Reversal",
            "line_order": line.line_order,
        }
        for line in entry.lines.select_related("account").order_by("line_order", "id")
    ]

    reversal = create_journal_entry(
        entry_date=entry_date or timezone.localdate(),
        description=description or f"Reversal of {entry.entry_number}",
        lines=lines,
        reference=f"REV-{entry.entry_number}",
        source=JournalEntry.SOURCE_ADJUSTMENT,
        source_ref=SourceRef(kind=SourceKind.JOURNAL_ENTRY, id=entry.pk),
        idempotency_key=f"reversal:{entry.pk}",
        actor_id=getattr(actor, "pk", None),
    )

    logger.info("Reversed journal entry %s with %s", entry.entry_number, reversal.entry_number)
    return reversal
