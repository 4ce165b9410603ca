# accounting/services/fiscal_years.py

"""
======================================================
PATH: accounting/services/fiscal_years.py
======================================================
FISCAL YEAR RESOLVER + CLOSE

- find_by_date(): which fiscal year covers a date (inclusive bounds)
- resolve_for_posting(): the same, plus posting rules
    * closed year      -> FiscalYearClosedError (always)
    * no covering year -> None, or FiscalYearRequiredError in strict mode
- close_fiscal_year(): zero income/expense into retained earnings with ONE
  closing entry dated on the last day of the year, then lock the year

ANTI-CIRCULAR-IMPORT RULE:
- journal_entry_service imports this module.
- Import the engine lazily inside close_fiscal_year().
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.fiscal_year import FiscalYear
from accounting.models.journal import JournalEntry, JournalLine
from accounting.models.source import SourceKind, SourceRef
from accounting.services.account_registry import RETAINED_EARNINGS, find_by_subtype
from accounting.services.exceptions import (
    FiscalYearClosedError,
    FiscalYearError,
    FiscalYearRequiredError,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def find_by_date(day) -> FiscalYear | None:
    return (
        FiscalYear.objects.filter(start_date__lte=day, end_date__gte=day)
        .order_by("start_date")
        .first()
    )


@transaction.atomic
def create_fiscal_year(*, name: str, start_date, end_date, is_current: bool = False) -> FiscalYear:
    try:
        fiscal_year = FiscalYear(
            name=name,
            start_date=start_date,
            end_date=end_date,
            is_current=is_current,
        )
        fiscal_year.full_clean()
    except ValidationError as exc:
        raise FiscalYearError("; ".join(exc.messages)) from exc

    if is_current:
        FiscalYear.objects.filter(is_current=True).update(is_current=False)

    fiscal_year.save()
    return fiscal_year


def resolve_for_posting(day, *, require: bool = False) -> FiscalYear | None:
    fiscal_year = find_by_date(day)

    if fiscal_year is None:
        if require:
            raise FiscalYearRequiredError(f"No fiscal year covers {day}")
        return None

    if fiscal_year.is_closed:
        raise FiscalYearClosedError(
            f"Fiscal year {fiscal_year.name} is closed; cannot post on {day}"
        )

    return fiscal_year


def _closing_lines(fiscal_year: FiscalYear, retained_earnings: Account) -> list[dict]:
    per_account = (
        JournalLine.objects.filter(
            entry__status=JournalEntry.POSTED,
            entry__entry_date__gte=fiscal_year.start_date,
            entry__entry_date__lte=fiscal_year.end_date,
            account__account_type__in=[Account.INCOME, Account.EXPENSE],
        )
        .values("account_id")
        .annotate(
            debit_total=Coalesce(Sum("debit"), ZERO),
            credit_total=Coalesce(Sum("credit"), ZERO),
        )
        .order_by("account__code")
    )

    accounts_by_id = Account.objects.in_bulk([row["account_id"] for row in per_account])

    lines: list[dict] = []
    net_income = ZERO

    for row in per_account:
        account = accounts_by_id[row["account_id"]]
        # Balance on the account's natural side; positive means "normal".
        balance = account.signed(debit=row["debit_total"], credit=row["credit_total"])
        if balance == 0:
            continue

        if account.account_type == Account.INCOME:
            net_income += balance
            side = "debit" if balance > 0 else "credit"
        else:
            net_income -= balance
            side = "credit" if balance > 0 else "debit"

        lines.append(
            {
                "account": account,
                side: abs(balance),
                "description": f"Close {account.code} {account.name}",
            }
        )

    if not lines:
        return []

    if net_income > 0:
        lines.append(
            {"account": retained_earnings, "credit": net_income, "description": "Net income for the year"}
        )
    elif net_income < 0:
        lines.append(
            {"account": retained_earnings, "debit": -net_income, "description": "Net loss for the year"}
        )

    return lines


@transaction.atomic
def close_fiscal_year(
    fiscal_year: FiscalYear,
    *,
    actor=None,
    retained_earnings: Account | None = None,
) -> FiscalYear:
    """
    Close a fiscal year.

    Income accounts are debited and expense accounts credited by their net
    posted activity for the year; the difference lands on retained earnings.
    A year without income/expense activity closes without an entry.
    """
    from accounting.services.journal_entry_service import create_journal_entry

    fiscal_year = FiscalYear.objects.select_for_update().get(pk=fiscal_year.pk)
    if fiscal_year.is_closed:
        raise FiscalYearError(f"Fiscal year {fiscal_year.name} is already closed")

    if retained_earnings is None:
        retained_earnings = find_by_subtype(RETAINED_EARNINGS)
    if retained_earnings is None:
        raise FiscalYearError(
            "No retained earnings account found to receive the year's net income"
        )

    actor_id = getattr(actor, "pk", None)
    lines = _closing_lines(fiscal_year, retained_earnings)

    closing_entry = None
    if lines:
        closing_entry = create_journal_entry(
            entry_date=fiscal_year.end_date,
            description=f"Closing entry for fiscal year {fiscal_year.name}",
            lines=lines,
            reference=f"CLOSE-{fiscal_year.name}",
            source=JournalEntry.SOURCE_CLOSING,
            source_ref=SourceRef(kind=SourceKind.FISCAL_YEAR, id=fiscal_year.pk),
            actor_id=actor_id,
        )

    fiscal_year.is_closed = True
    fiscal_year.is_current = False
    fiscal_year.closed_at = timezone.now()
    fiscal_year.closed_by_id = actor_id
    fiscal_year.closing_entry = closing_entry
    fiscal_year.save()

    logger.info(
        "Closed fiscal year %s (closing entry: %s)",
        fiscal_year.name,
        closing_entry.entry_number if closing_entry else "none",
    )
    return fiscal_year
