# accounting/services/recurring_service.py

"""
======================================================
PATH: accounting/services/recurring_service.py
======================================================
RECURRING ENTRY SCHEDULER

run_due_entries() is the periodic trigger (see the
process_recurring_entries management command). Per due template, in its
own transaction:

1) lock the template row (SKIP LOCKED: a locked row means another run owns
   it right now, so we skip instead of waiting)
2) re-check due-ness and last_run_date on the locked row
3) create the posted entry for the occurrence through the engine
   (idempotency key "recurring:<template>:<occurrence>" is a second guard)
4) last_run_date = occurrence, advance next_run_date, occurrences += 1

All due occurrences up to `today` are caught up, each dated on its own
occurrence. An occurrence inside a closed fiscal year is skipped (WARNING)
and the schedule moves past it. A failing template is rolled back, logged
and counted; the next tick retries it. The trigger never raises for a single template.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from django.db import transaction
from django.utils import timezone

from accounting.models.journal import JournalEntry
from accounting.models.recurring import RecurringJournalEntry
from accounting.models.source import SourceKind, SourceRef
from accounting.services.exceptions import RecurringEntryError
from accounting.services.fiscal_years import find_by_date
from accounting.services.journal_entry_service import create_journal_entry
from accounting.services.posting import get_accounting_service

logger = logging.getLogger(__name__)

# Upper bound of occurrences generated for one template in one run.
MAX_CATCH_UP = 366

_MONTH_STEPS = {
    RecurringJournalEntry.MONTHLY: 1,
    RecurringJournalEntry.QUARTERLY: 3,
    RecurringJournalEntry.YEARLY: 12,
}


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def advance(day: date, frequency: str) -> date:
    """Next occurrence after `day`; month-based steps clamp to the month end."""
    if frequency == RecurringJournalEntry.DAILY:
        return day + timedelta(days=1)
    if frequency == RecurringJournalEntry.WEEKLY:
        return day + timedelta(weeks=1)
    if frequency in _MONTH_STEPS:
        return _add_months(day, _MONTH_STEPS[frequency])
    raise RecurringEntryError(f"Unknown frequency: {frequency!r}")


@dataclass
class RecurringRunResult:
    created: int = 0
    skipped: int = 0
    failed: int = 0
    entries: list = field(default_factory=list)
    errors: list = field(default_factory=list)


def _occurrence_key(template: RecurringJournalEntry, occurrence: date) -> str:
    return f"recurring:{template.pk}:{occurrence.isoformat()}"


def _template_lines(template: RecurringJournalEntry) -> list[dict]:
    lines = [
        {
            "account": line.account,
            "debit": line.debit,
            "credit": line.credit,
            "description": line.description,
            "line_order": line.line_order,
        }
        for line in template.lines.select_related("account").order_by("line_order", "id")
    ]
    if len(lines) < 2:
        raise RecurringEntryError(f"Template {template.name} needs at least 2 lines")

    total_debit = sum(line["debit"] for line in lines)
    total_credit = sum(line["credit"] for line in lines)
    if total_debit != total_credit:
        raise RecurringEntryError(
            f"Template {template.name} is not balanced: debits={total_debit} credits={total_credit}"
        )
    return lines


def _generate(
    template: RecurringJournalEntry,
    *,
    occurrence: date,
    entry_date: date,
    actor_id: int | None,
) -> JournalEntry:
    """Create the entry for one occurrence and advance the template (locked row)."""
    entry = create_journal_entry(
        entry_date=entry_date,
        description=template.description or template.name,
        lines=_template_lines(template),
        reference=f"REC-{template.pk}",
        source=JournalEntry.SOURCE_RECURRING,
        source_ref=SourceRef(kind=SourceKind.RECURRING, id=template.pk),
        idempotency_key=_occurrence_key(template, occurrence),
        actor_id=actor_id,
    )

    template.last_run_date = occurrence
    template.next_run_date = advance(occurrence, template.frequency)
    template.occurrences += 1
    template.save(update_fields=["last_run_date", "next_run_date", "occurrences", "updated_at"])
    return entry


def _in_closed_year(occurrence: date) -> bool:
    fiscal_year = find_by_date(occurrence)
    return fiscal_year is not None and fiscal_year.is_closed


def _run_template(template_id: int, *, today: date, result: RecurringRunResult) -> None:
    with transaction.atomic():
        template = (
            RecurringJournalEntry.objects.select_for_update(skip_locked=True)
            .filter(pk=template_id)
            .first()
        )
        if template is None:
            # Row is locked by a concurrent run (or was deleted meanwhile).
            result.skipped += 1
            return

        created: list[JournalEntry] = []
        passed_over = 0
        steps = 0
        while template.is_due(today) and steps < MAX_CATCH_UP:
            steps += 1
            occurrence = template.next_run_date
            if template.last_run_date and occurrence <= template.last_run_date:
                # Already generated for this occurrence; repair the pointer.
                template.next_run_date = advance(template.last_run_date, template.frequency)
                template.save(update_fields=["next_run_date", "updated_at"])
                continue

            if _in_closed_year(occurrence):
                logger.warning(
                    "Recurring template %s (%s): occurrence %s falls in a closed fiscal year; "
                    "skipped (use run-now to book it in the open period)",
                    template.pk,
                    template.name,
                    occurrence,
                )
                template.next_run_date = advance(occurrence, template.frequency)
                template.save(update_fields=["next_run_date", "updated_at"])
                passed_over += 1
                continue

            entry = _generate(
                template,
                occurrence=occurrence,
                entry_date=occurrence,
                actor_id=template.created_by_id,
            )
            created.append(entry)

    # Counted only once the template transaction has committed.
    if created:
        result.entries.extend(created)
        result.created += len(created)
    result.skipped += passed_over
    if not created and not passed_over:
        result.skipped += 1


def run_due_entries(
    *,
    service=None,
    today: date | None = None,
    dry_run: bool = False,
) -> RecurringRunResult:
    """
    Generate every due recurring entry up to `today`.

    `service` is the AccountingService whose gate applies; None uses the
    configured one. With the gate off nothing happens.
    """
    if service is None:
        service = get_accounting_service()

    result = RecurringRunResult()
    if not service.is_accounting_enabled():
        logger.info("Accounting disabled; recurring entries not processed")
        return result

    today = today or timezone.localdate()

    due_ids = list(
        RecurringJournalEntry.objects.filter(is_active=True, next_run_date__lte=today)
        .order_by("next_run_date", "id")
        .values_list("id", flat=True)
    )

    if dry_run:
        for template in RecurringJournalEntry.objects.filter(id__in=due_ids):
            if template.is_due(today):
                result.entries.append(template)
                result.created += 1
            else:
                result.skipped += 1
        return result

    for template_id in due_ids:
        try:
            _run_template(template_id, today=today, result=result)
        except Exception as exc:
            # Rolled back; the next tick retries it.
            result.failed += 1
            result.errors.append(f"template {template_id}: {exc}")
            logger.exception("Recurring template %s failed", template_id)

    logger.info(
        "Recurring run %s: created=%s skipped=%s failed=%s",
        today,
        result.created,
        result.skipped,
        result.failed,
    )
    return result


@transaction.atomic
def run_now(
    template: RecurringJournalEntry,
    *,
    actor=None,
    today: date | None = None,
) -> JournalEntry:
    """
    Generate the template's pending occurrence immediately, dated today.

    Bypasses the schedule but not the template limits (active, end date,
    max occurrences). State advances exactly like a scheduled run.
    """
    template = RecurringJournalEntry.objects.select_for_update().get(pk=template.pk)
    today = today or timezone.localdate()

    if not template.is_active:
        raise RecurringEntryError(f"Template {template.name} is inactive")
    if not template.within_schedule(template.next_run_date):
        raise RecurringEntryError(f"Template {template.name} has no remaining occurrences")

    entry = _generate(
        template,
        occurrence=template.next_run_date,
        entry_date=today,
        actor_id=getattr(actor, "pk", None) or template.created_by_id,
    )
    logger.info("Ran recurring template %s now: %s", template.name, entry.entry_number)
    return entry


def toggle_active(template: RecurringJournalEntry) -> RecurringJournalEntry:
    template.is_active = not template.is_active
    template.save(update_fields=["is_active", "updated_at"])
    return template
