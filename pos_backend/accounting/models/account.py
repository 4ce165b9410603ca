# accounting/models/account.py

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Account(models.Model):
    """
    A single account in the chart of accounts.

    Guarantees:
    - Account codes are unique (1xxx asset, 2xxx liability, 3xxx equity,
      4xxx income, 5xxx expense by convention)
    - Code + names are normalized (trimmed)
    - Subtype belongs to the family of the account type
    - At most one primary account per subtype (used by subtype lookups)
    - System accounts cannot be deleted
    """

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    INCOME = "income"
    EXPENSE = "expense"

    ACCOUNT_TYPES = [
        (ASSET, "Asset"),
        (LIABILITY, "Liability"),
        (EQUITY, "Equity"),
        (INCOME, "Income"),
        (EXPENSE, "Expense"),
    ]

    # Debit-normal types; the rest are credit-normal.
    DEBIT_NORMAL_TYPES = frozenset({ASSET, EXPENSE})

    SUBTYPES_BY_TYPE = {
        ASSET: (
            "cash",
            "bank",
            "accounts_receivable",
            "inventory",
            "prepaid",
            "fixed_asset",
            "other_asset",
        ),
        LIABILITY: (
            "accounts_payable",
            "credit_card",
            "current_liability",
            "long_term_liability",
            "other_liability",
        ),
        EQUITY: ("owners_equity", "retained_earnings", "other_equity"),
        INCOME: ("sales", "other_income"),
        EXPENSE: (
            "cost_of_goods_sold",
            "operating_expense",
            "payroll",
            "other_expense",
        ),
    }

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=150)
    name_local = models.CharField(
        max_length=150,
        blank=True,
        default="",
        help_text="Localized display name",
    )
    description = models.TextField(blank=True, default="")

    account_type = models.CharField(max_length=20, choices=ACCOUNT_TYPES)
    subtype = models.CharField(max_length=40, db_index=True)

    opening_balance = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Signed balance carried in before the first journal line",
    )

    is_system = models.BooleanField(
        default=False,
        help_text="Seeded account; cannot be deleted",
    )
    is_active = models.BooleanField(default=True)
    is_primary = models.BooleanField(
        default=False,
        help_text="Canonical account returned for its subtype",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        verbose_name = "Account"
        verbose_name_plural = "Accounts"
        indexes = [
            models.Index(fields=["account_type"], name="acct_account_type_idx"),
            models.Index(fields=["subtype", "is_active"], name="acct_subtype_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_account_code_not_blank",
            ),
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_account_name_not_blank",
            ),
            models.UniqueConstraint(
                fields=["subtype"],
                condition=Q(is_primary=True),
                name="uniq_account_primary_per_subtype",
            ),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    @property
    def is_debit_normal(self) -> bool:
        return self.account_type in self.DEBIT_NORMAL_TYPES

    def signed(self, *, debit: Decimal, credit: Decimal) -> Decimal:
        """Net effect of a debit/credit pair on this account's balance."""
        if self.is_debit_normal:
            return debit - credit
        return credit - debit

    def clean(self):
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()
        self.name_local = (self.name_local or "").strip()
        self.subtype = (self.subtype or "").strip().lower()

        if not self.code:
            raise ValidationError("Account code is required")
        if not self.name:
            raise ValidationError("Account name is required")

        allowed = self.SUBTYPES_BY_TYPE.get(self.account_type)
        if allowed is None:
            raise ValidationError({"account_type": "Unknown account type"})
        if self.subtype not in allowed:
            raise ValidationError(
                {
                    "subtype": (
                        f"Subtype '{self.subtype}' is not valid for "
                        f"{self.account_type} accounts"
                    )
                }
            )

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.is_system:
            raise ValidationError("System accounts cannot be deleted")
        return super().delete(*args, **kwargs)
