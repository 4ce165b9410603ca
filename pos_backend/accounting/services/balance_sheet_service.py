# accounting/services/balance_sheet_service.py

"""
BALANCE SHEET SERVICE

Read-only snapshot of the ledger as at a date (inclusive).

Responsibilities:
- Compute balances per account (opening balance + posted lines up to as_of)
- Classify balances into Assets, Liabilities, Equity
- Check Assets = Liabilities + Equity

Income/expense activity that has not been closed yet is reported as
"current_earnings" inside equity. After a year-end close that activity sits
in retained earnings instead, so the totals do not change.
"""

from __future__ import annotations

from datetime import date

from django.utils import timezone

from accounting.models.account import Account
from accounting.services.balance_service import ZERO, _q2, account_totals

SECTIONS_BY_TYPE = {
    Account.ASSET: "assets",
    Account.LIABILITY: "liabilities",
    Account.EQUITY: "equity",
}


def get_balance_sheet(*, as_of: date | None = None) -> dict:
    as_of = as_of or timezone.localdate()
    totals_by_account = account_totals(end=as_of)

    sections: dict[str, list[dict]] = {name: [] for name in SECTIONS_BY_TYPE.values()}
    current_earnings = ZERO

    for acc in Account.objects.order_by("code"):
        debit, credit = totals_by_account.get(acc.id, (ZERO, ZERO))
        balance = _q2(_q2(acc.opening_balance) + acc.signed(debit=debit, credit=credit))

        if acc.account_type == Account.INCOME:
            current_earnings += balance
            continue
        if acc.account_type == Account.EXPENSE:
            current_earnings -= balance
            continue

        if not acc.is_active and not balance:
            continue

        sections[SECTIONS_BY_TYPE[acc.account_type]].append(
            {
                "account_id": acc.id,
                "code": acc.code,
                "name": acc.name,
                "subtype": acc.subtype,
                "balance": balance,
            }
        )

    current_earnings = _q2(current_earnings)
    total_assets = _q2(sum((row["balance"] for row in sections["assets"]), ZERO))
    total_liabilities = _q2(sum((row["balance"] for row in sections["liabilities"]), ZERO))
    total_equity = _q2(sum((row["balance"] for row in sections["equity"]), ZERO) + current_earnings)

    return {
        "as_of": as_of,
        **sections,
        "current_earnings": current_earnings,
        "total_assets": total_assets,
        "total_liabilities": total_liabilities,
        "total_equity": total_equity,
        "total_liabilities_and_equity": _q2(total_liabilities + total_equity),
        "is_balanced": total_assets == _q2(total_liabilities + total_equity),
    }
