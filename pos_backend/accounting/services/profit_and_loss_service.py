# accounting/services/profit_and_loss_service.py

"""
PROFIT & LOSS SERVICE (INCOME STATEMENT)

Read-only aggregation over posted journal lines.

Key rules:
- Only POSTED entries count; the timeline is JournalEntry.entry_date
- Year-end closing entries are excluded (they zero income/expense, not earn it)
- Lines are grouped by account subtype:
    sales               -> sales_revenue
    other_income        -> other_income
    cost_of_goods_sold  -> cost_of_goods_sold
    operating_expense   -> operating_expenses
    payroll             -> payroll_expenses
    other_expense       -> other_expenses

Shape:
    gross_profit     = total_revenue - total_cogs
    operating_income = gross_profit - total_operating_expenses
    net_income       = operating_income + total_other_income - total_other_expenses
"""

from __future__ import annotations

from datetime import date

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.services.balance_service import ZERO, _q2, account_totals

SECTIONS_BY_SUBTYPE = {
    "sales": "sales_revenue",
    "other_income": "other_income",
    "cost_of_goods_sold": "cost_of_goods_sold",
    "operating_expense": "operating_expenses",
    "payroll": "payroll_expenses",
    "other_expense": "other_expenses",
}


def _section_total(rows: list[dict]):
    return _q2(sum((row["amount"] for row in rows), ZERO))


def get_income_statement(*, start: date | None = None, end: date | None = None) -> dict:
    """
    Income statement over [start, end] (either bound optional).

    Every income/expense account that is active or moved in the period is
    listed; amounts are positive in the account's normal direction.
    """
    totals_by_account = account_totals(
        start=start,
        end=end,
        exclude_sources=(JournalEntry.SOURCE_CLOSING,),
    )

    sections: dict[str, list[dict]] = {name: [] for name in SECTIONS_BY_SUBTYPE.values()}

    accounts = Account.objects.filter(
        account_type__in=(Account.INCOME, Account.EXPENSE),
    ).order_by("code")

    for acc in accounts:
        debit, credit = totals_by_account.get(acc.id, (ZERO, ZERO))
        amount = _q2(acc.signed(debit=debit, credit=credit))

        if not acc.is_active and not amount:
            continue

        section = SECTIONS_BY_SUBTYPE.get(acc.subtype)
        if section is None:
            continue

        sections[section].append(
            {
                "account_id": acc.id,
                "code": acc.code,
                "name": acc.name,
                "name_local": acc.name_local,
                "subtype": acc.subtype,
                "amount": amount,
            }
        )

    total_revenue = _section_total(sections["sales_revenue"])
    total_cogs = _section_total(sections["cost_of_goods_sold"])
    gross_profit = _q2(total_revenue - total_cogs)

    total_operating_expenses = _q2(
        _section_total(sections["operating_expenses"]) + _section_total(sections["payroll_expenses"])
    )
    operating_income = _q2(gross_profit - total_operating_expenses)

    total_other_income = _section_total(sections["other_income"])
    total_other_expenses = _section_total(sections["other_expenses"])
    net_income = _q2(operating_income + total_other_income - total_other_expenses)

    return {
        "start": start,
        "end": end,
        **sections,
        "total_revenue": total_revenue,
        "total_cogs": total_cogs,
        "gross_profit": gross_profit,
        "total_operating_expenses": total_operating_expenses,
        "operating_income": operating_income,
        "total_other_income": total_other_income,
        "total_other_expenses": total_other_expenses,
        "net_income": net_income,
    }
