# accounting/services/account_registry.py

"""
======================================================
PATH: accounting/services/account_registry.py
======================================================
ACCOUNT REGISTRY

This module answers ONE question:
"Which account plays this role (subtype)?"

Resolution order for find_by_subtype(subtype):
1) the active account flagged primary for the subtype
2) the single active account carrying the subtype
3) None when no active account carries it (configuration absence)

Several active accounts with no primary is ambiguous and hard-fails
(AccountResolutionError) instead of silently picking one.

Also owns the default chart of accounts (seed_default_accounts).
"""

from __future__ import annotations

import logging

from django.db import transaction

from accounting.models.account import Account
from accounting.services.exceptions import AccountResolutionError

logger = logging.getLogger(__name__)

# ------------------------------------------------------------
# SUBTYPES USED BY THE POSTING RECIPES
# ------------------------------------------------------------
CASH = "cash"
BANK = "bank"
ACCOUNTS_RECEIVABLE = "accounts_receivable"
INVENTORY = "inventory"
ACCOUNTS_PAYABLE = "accounts_payable"
RETAINED_EARNINGS = "retained_earnings"
SALES = "sales"
COST_OF_GOODS_SOLD = "cost_of_goods_sold"
OPERATING_EXPENSE = "operating_expense"

# ------------------------------------------------------------
# DEFAULT CHART
# (code, name, localized name, type, subtype, is_system)
# System accounts are the canonical (primary) account of their subtype.
# ------------------------------------------------------------
DEFAULT_ACCOUNTS = [
    # Assets (1000-1999)
    ("1000", "Cash", "ငွေသား", Account.ASSET, CASH, True),
    ("1010", "Bank Account", "ဘဏ်စာရင်း", Account.ASSET, BANK, True),
    ("1100", "Accounts Receivable", "ရရန်ငွေ", Account.ASSET, ACCOUNTS_RECEIVABLE, True),
    ("1200", "Inventory", "ကုန်ပစ္စည်းစာရင်း", Account.ASSET, INVENTORY, True),
    ("1300", "Prepaid Expenses", "ကြိုတင်အသုံးစရိတ်", Account.ASSET, "prepaid", False),
    ("1500", "Fixed Assets", "ပုံသေပိုင်ဆိုင်မှု", Account.ASSET, "fixed_asset", False),
    # Liabilities (2000-2999)
    ("2000", "Accounts Payable", "ပေးရန်ငွေ", Account.LIABILITY, ACCOUNTS_PAYABLE, True),
    ("2100", "Credit Card Payable", "ကြွေးကတ်ပေးရန်", Account.LIABILITY, "credit_card", False),
    ("2500", "Long-term Loans", "ရေရှည်ချေးငွေ", Account.LIABILITY, "long_term_liability", False),
    # Equity (3000-3999)
    ("3000", "Owner's Equity", "ပိုင်ရှင်အရင်းအနှီး", Account.EQUITY, "owners_equity", True),
    ("3100", "Retained Earnings", "ထိန်းသိမ်းထားသောအမြတ်", Account.EQUITY, RETAINED_EARNINGS, True),
    # Income (4000-4999)
    ("4000", "Sales Revenue", "ရောင်းအားဝင်ငွေ", Account.INCOME, SALES, True),
    ("4100", "Other Income", "အခြားဝင်ငွေ", Account.INCOME, "other_income", False),
    # Expenses (5000-5999)
    ("5000", "Cost of Goods Sold", "ရောင်းချသောကုန်ကုန်ကျစရိတ်", Account.EXPENSE, COST_OF_GOODS_SOLD, True),
    ("5100", "Operating Expenses", "လုပ်ငန်းအသုံးစရိတ်", Account.EXPENSE, OPERATING_EXPENSE, True),
    ("5200", "Payroll Expense", "လစာအသုံးစရိတ်", Account.EXPENSE, "payroll", False),
    ("5300", "Rent Expense", "ငှားရမ်းခအသုံးစရိတ်", Account.EXPENSE, OPERATING_EXPENSE, False),
    ("5400", "Utilities Expense", "အသုံးအဆောင်အသုံးစရိတ်", Account.EXPENSE, OPERATING_EXPENSE, False),
    ("5900", "Bad Debt Expense", "ကောက်မရသောအကြွေးအသုံးစရိတ်", Account.EXPENSE, "other_expense", False),
]


def accounts_for_subtype(subtype: str):
    """All active accounts carrying `subtype`, ordered by code."""
    return Account.objects.filter(subtype=subtype, is_active=True).order_by("code")


def find_by_subtype(subtype: str) -> Account | None:
    qs = accounts_for_subtype(subtype)

    primary = qs.filter(is_primary=True).first()
    if primary is not None:
        return primary

    candidates = list(qs[:2])
    if not candidates:
        return None
    if len(candidates) > 1:
        raise AccountResolutionError(
            f"Several active '{subtype}' accounts exist and none is primary. "
            "Flag one as primary to make the lookup deterministic."
        )
    return candidates[0]


@transaction.atomic
def seed_default_accounts() -> int:
    """
    Create the standard chart of accounts. Idempotent by code.

    Existing accounts are never modified. A seeded account is only flagged
    primary when no other account already holds that role.

    Returns the number of accounts created.
    """
    created_count = 0

    for code, name, name_local, account_type, subtype, is_system in DEFAULT_ACCOUNTS:
        is_primary = (
            is_system
            and not Account.objects.filter(subtype=subtype, is_primary=True).exists()
        )

        _, created = Account.objects.get_or_create(
            code=code,
            defaults={
                "name": name,
                "name_local": name_local,
                "account_type": account_type,
                "subtype": subtype,
                "is_system": is_system,
                "is_primary": is_primary,
            },
        )
        if created:
            created_count += 1

    if created_count:
        logger.info("Seeded %s default accounts", created_count)

    return created_count
