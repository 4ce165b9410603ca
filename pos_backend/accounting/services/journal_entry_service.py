# accounting/services/journal_entry_service.py

"""
======================================================
PATH: accounting/services/journal_entry_service.py
======================================================
JOURNAL ENTRY SERVICE (ACCOUNTING ENGINE)

This module is the ONLY place allowed to:
- Create JournalEntry + JournalLine rows
- Allocate entry numbers
- Enforce debit == credit
- Guarantee atomicity (entry + lines + cached totals, or nothing)
- Enforce idempotency (one entry per business object / occurrence)
- Enforce fiscal-year rules (no posting into closed years)

Everything else (sales, expenses, purchases, refunds, recurring templates,
reversals, year-end closing) must pass through here.

Line input (dict):
    {"account": Account, "debit": ..., "credit": ..., "description": "...",
     "line_order": int (optional, defaults to position)}
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from accounting.models.journal import JournalEntry, JournalLine
from accounting.models.source import SourceRef
from accounting.services.entry_numbers import generate_entry_number
from accounting.services.exceptions import (
    IdempotencyError,
    JournalEntryCreationError,
    UnbalancedJournalError,
)
from accounting.services.fiscal_years import resolve_for_posting

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
MIN_LINE_AMOUNT = Decimal("0.01")
MIN_LINES = 2


def _money(value) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise JournalEntryCreationError(f"Invalid money value: {value!r}") from exc

    if not amt.is_finite():
        raise JournalEntryCreationError(f"Invalid money value: {value!r}")

    return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def as_entry_date(value: date | datetime | None) -> date:
    """Accounting date for a date or datetime (aware datetimes use local time)."""
    if value is None:
        return timezone.localdate()
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    return value


def require_fiscal_year_default() -> bool:
    return bool(getattr(settings, "ACCOUNTING_REQUIRE_FISCAL_YEAR", False))


def _normalize_lines(lines: list) -> list[dict]:
    if not lines or len(lines) < MIN_LINES:
        raise JournalEntryCreationError(
            f"Journal entry must contain at least {MIN_LINES} lines"
        )

    normalized: list[dict] = []
    for position, line in enumerate(lines):
        if not isinstance(line, dict):
            raise JournalEntryCreationError("Each line must be an object/dict")

        account = line.get("account")
        if account is None:
            raise JournalEntryCreationError("Line missing account")

        if not getattr(account, "is_active", True):
            raise JournalEntryCreationError(
                f"Account {getattr(account, 'code', 'UNKNOWN')} is inactive"
            )

        debit = _money(line.get("debit"))
        credit = _money(line.get("credit"))

        if debit < 0 or credit < 0:
            raise JournalEntryCreationError("Debit or credit cannot be negative")

        if debit > 0 and credit > 0:
            raise JournalEntryCreationError("A line cannot have both debit and credit")

        if debit == 0 and credit == 0:
            raise JournalEntryCreationError("A line must have either debit or credit")

        if 0 < debit < MIN_LINE_AMOUNT or 0 < credit < MIN_LINE_AMOUNT:
            raise JournalEntryCreationError("Line amount too small")

        normalized.append(
            {
                "account": account,
                "debit": debit,
                "credit": credit,
                "description": (line.get("description") or "").strip(),
                "line_order": int(line.get("line_order", position)),
            }
        )

    return normalized


def _assert_balanced(total_debit: Decimal, total_credit: Decimal) -> None:
    if total_debit != total_credit:
        raise UnbalancedJournalError(
            f"Journal entry not balanced: debits={total_debit} credits={total_credit}"
        )


@transaction.atomic
def create_journal_entry(
    *,
    entry_date: date | datetime | None,
    description: str,
    lines: list,
    reference: str = "",
    source: str = JournalEntry.SOURCE_MANUAL,
    source_ref: SourceRef | None = None,
    idempotency_key: str | None = None,
    status: str = JournalEntry.POSTED,
    actor_id: int | None = None,
    require_fiscal_year: bool | None = None,
) -> JournalEntry:
    description = (description or "").strip()
    if not description:
        raise JournalEntryCreationError("Journal entry description is required")

    if status not in (JournalEntry.DRAFT, JournalEntry.POSTED):
        raise JournalEntryCreationError(f"Cannot create an entry with status {status!r}")

    normalized = _normalize_lines(lines)
    _assert_balanced(
        sum((line["debit"] for line in normalized), Decimal("0.00")),
        sum((line["credit"] for line in normalized), Decimal("0.00")),
    )

    day = as_entry_date(entry_date)
    if require_fiscal_year is None:
        require_fiscal_year = require_fiscal_year_default()
    fiscal_year = resolve_for_posting(day, require=require_fiscal_year)

    key = (idempotency_key or "").strip() or (source_ref.idempotency_key if source_ref else None)

    # Clear error before DB constraint race handling
    if key and JournalEntry.objects.filter(idempotency_key=key).exists():
        raise IdempotencyError(f"Journal entry already exists for {key}")

    posted = status == JournalEntry.POSTED
    entry = JournalEntry(
        entry_number=generate_entry_number(),
        entry_date=day,
        fiscal_year=fiscal_year,
        reference=reference or "",
        description=description,
        status=status,
        source=source,
        idempotency_key=key,
        created_by_id=actor_id,
        posted_by_id=actor_id if posted else None,
        posted_at=timezone.now() if posted else None,
    )
    entry.source_ref = source_ref

    try:
        with transaction.atomic():
            entry.save()
    except (IntegrityError, ValidationError) as exc:
        if key and JournalEntry.objects.filter(idempotency_key=key).exists():
            raise IdempotencyError(f"Journal entry already exists for {key}") from exc
        raise JournalEntryCreationError(f"Failed to create journal entry: {exc}") from exc

    JournalLine.objects.bulk_create(
        [
            JournalLine(
                entry=entry,
                account=line["account"],
                description=line["description"],
                debit=line["debit"],
                credit=line["credit"],
                line_order=line["line_order"],
            )
            for line in normalized
        ]
    )

    entry.recalculate_totals()
    _assert_balanced(entry.total_debit, entry.total_credit)

    logger.info(
        "Created journal entry %s (%s, %s) debit=%s credit=%s source=%s",
        entry.entry_number,
        entry.source,
        entry.status,
        entry.total_debit,
        entry.total_credit,
        source_ref or "-",
    )
    return entry


def create_manual_entry(
    *,
    entry_date: date,
    description: str,
    lines: list,
    reference: str = "",
    actor=None,
) -> JournalEntry:
    """Manual entries start as drafts; post_entry() makes them count."""
    return create_journal_entry(
        entry_date=entry_date,
        description=description,
        lines=lines,
        reference=reference,
        source=JournalEntry.SOURCE_MANUAL,
        status=JournalEntry.DRAFT,
        actor_id=getattr(actor, "pk", None),
    )
