# accounting/services/balance_service.py

"""
BALANCE & LEDGER SERVICE (AUTHORITATIVE)

Read-only ledger aggregation helpers.

RULES:
- READ-ONLY: no writes, ever
- JournalLine is the single source of truth (cached entry totals are not used)
- Accounting timeline uses JournalEntry.entry_date
- Only POSTED entries count (draft + void are ignored)
- Sign follows the account type:
    Assets & Expenses               -> debit - credit
    Liabilities, Equity & Income    -> credit - debit
- Account.opening_balance is carried in before the first line

Continuity:
  ledger_for(a, start=s, end=m).closing_balance
      == ledger_for(a, start=m + 1 day, end=e).opening_balance
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Sum
from django.db.models.functions import Coalesce

from accounting.models.account import Account
from accounting.models.journal import JournalEntry, JournalLine

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _q2(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LedgerRow:
    entry: JournalEntry
    line: JournalLine
    debit: Decimal
    credit: Decimal
    net: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class Ledger:
    account: Account
    start: date | None
    end: date | None
    opening_balance: Decimal
    rows: tuple[LedgerRow, ...]
    closing_balance: Decimal


def _posted_lines(*, account: Account | None = None):
    qs = JournalLine.objects.filter(entry__status=JournalEntry.POSTED)
    if account is not None:
        qs = qs.filter(account=account)
    return qs


def _sums(qs) -> tuple[Decimal, Decimal]:
    totals = qs.aggregate(
        debit_total=Coalesce(Sum("debit"), ZERO),
        credit_total=Coalesce(Sum("credit"), ZERO),
    )
    return _q2(totals["debit_total"]), _q2(totals["credit_total"])


def _balance_before(account: Account, day: date | None) -> Decimal:
    """Opening balance plus every posted line dated strictly before `day`."""
    opening = _q2(account.opening_balance)
    if day is None:
        return opening

    debit, credit = _sums(_posted_lines(account=account).filter(entry__entry_date__lt=day))
    return _q2(opening + account.signed(debit=debit, credit=credit))


def get_account_balance(account: Account, *, as_of: date | None = None) -> Decimal:
    if as_of is None:
        debit, credit = _sums(_posted_lines(account=account))
        return _q2(_q2(account.opening_balance) + account.signed(debit=debit, credit=credit))
    return _balance_before(account, as_of + timedelta(days=1))


def ledger_for(account: Account, *, start: date | None = None, end: date | None = None) -> Ledger:
    if start and end and end < start:
        raise ValueError("Ledger end date cannot be before its start date")

    opening = _balance_before(account, start)

    qs = (
        _posted_lines(account=account)
        .select_related("entry")
        .order_by("entry__entry_date", "entry__entry_number", "line_order", "id")
    )
    if start is not None:
        qs = qs.filter(entry__entry_date__gte=start)
    if end is not None:
        qs = qs.filter(entry__entry_date__lte=end)

    running = opening
    rows: list[LedgerRow] = []
    for line in qs:
        net = account.signed(debit=line.debit, credit=line.credit)
        running = _q2(running + net)
        rows.append(
            LedgerRow(
                entry=line.entry,
                line=line,
                debit=line.debit,
                credit=line.credit,
                net=net,
                running_balance=running,
            )
        )

    return Ledger(
        account=account,
        start=start,
        end=end,
        opening_balance=opening,
        rows=tuple(rows),
        closing_balance=running,
    )


def account_totals(
    *,
    start: date | None = None,
    end: date | None = None,
    exclude_sources=(),
) -> dict[int, tuple[Decimal, Decimal]]:
    """Posted (debit, credit) totals per account id inside [start, end], one query."""
    qs = _posted_lines()
    if start is not None:
        qs = qs.filter(entry__entry_date__gte=start)
    if end is not None:
        qs = qs.filter(entry__entry_date__lte=end)
    if exclude_sources:
        qs = qs.exclude(entry__source__in=list(exclude_sources))

    return {
        row["account_id"]: (_q2(row["debit_total"]), _q2(row["credit_total"]))
        for row in qs.values("account_id").annotate(
            debit_total=Coalesce(Sum("debit"), ZERO),
            credit_total=Coalesce(Sum("credit"), ZERO),
        )
    }


def get_trial_balance(*, start: date | None = None, end: date | None = None) -> dict:
    """
    Bulk trial balance (no N+1).

    Without `start`, balances are cumulative and include opening balances.
    With `start`, only the movement inside [start, end] is reported.

    Each row puts the account's net on its debit or credit column; the two
    column totals match for any consistent ledger.
    """
    accounts = list(Account.objects.order_by("code"))
    totals_by_account = account_totals(start=start, end=end)

    rows = []
    total_debit_balance = ZERO
    total_credit_balance = ZERO

    for acc in accounts:
        debit, credit = totals_by_account.get(acc.id, (ZERO, ZERO))
        opening = _q2(acc.opening_balance) if start is None else ZERO

        if not debit and not credit and not opening:
            continue

        balance = _q2(opening + acc.signed(debit=debit, credit=credit))

        # Express the balance as a debit-side amount, then split by sign.
        debit_side = balance if acc.is_debit_normal else -balance
        debit_balance = debit_side if debit_side > 0 else ZERO
        credit_balance = -debit_side if debit_side < 0 else ZERO

        total_debit_balance += debit_balance
        total_credit_balance += credit_balance

        rows.append(
            {
                "account_id": acc.id,
                "code": acc.code,
                "name": acc.name,
                "account_type": acc.account_type,
                "debit_total": debit,
                "credit_total": credit,
                "balance": balance,
                "debit_balance": debit_balance,
                "credit_balance": credit_balance,
            }
        )

    return {
        "start": start,
        "end": end,
        "rows": rows,
        "total_debit_balance": _q2(total_debit_balance),
        "total_credit_balance": _q2(total_credit_balance),
        "is_balanced": _q2(total_debit_balance) == _q2(total_credit_balance),
    }
