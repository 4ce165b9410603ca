# accounting/models/journal.py

"""
======================================================
PATH: accounting/models/journal.py
======================================================
JOURNAL ENTRY + JOURNAL LINE MODELS

JournalEntry is the transaction header, JournalLine one debit or credit
against a single account.

Guarantees:
- entry_number is unique (allocated by the engine, never by callers)
- idempotency_key is unique when present (one entry per business object)
- total_debit / total_credit are a cache of the line sums, refreshed only
  through recalculate_totals()
- Lines carry exactly one non-zero, non-negative side
- Posted and void entries are history: their lines cannot change and the
  entry cannot be deleted (void / reverse instead)
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce

from accounting.models.account import Account
from accounting.models.source import SourceKind, SourceRef

ZERO = Decimal("0.00")


class JournalEntry(models.Model):
    DRAFT = "draft"
    POSTED = "posted"
    VOID = "void"

    STATUSES = [
        (DRAFT, "Draft"),
        (POSTED, "Posted"),
        (VOID, "Void"),
    ]

    # Source tags
    SOURCE_MANUAL = "manual"
    SOURCE_SALES = "sales"
    SOURCE_EXPENSE = "expense"
    SOURCE_PURCHASE = "purchase"
    SOURCE_REFUND = "refund"
    SOURCE_RECURRING = "recurring"
    SOURCE_ADJUSTMENT = "adjustment"
    SOURCE_CLOSING = "closing"

    SOURCES = [
        (SOURCE_MANUAL, "Manual"),
        (SOURCE_SALES, "Sales"),
        (SOURCE_EXPENSE, "Expense"),
        (SOURCE_PURCHASE, "Purchase"),
        (SOURCE_REFUND, "Refund"),
        (SOURCE_RECURRING, "Recurring"),
        (SOURCE_ADJUSTMENT, "Adjustment"),
        (SOURCE_CLOSING, "Year-end closing"),
    ]

    entry_number = models.CharField(max_length=30, unique=True, editable=False)
    entry_date = models.DateField(help_text="Accounting effective date")

    fiscal_year = models.ForeignKey(
        "accounting.FiscalYear",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="journal_entries",
    )

    reference = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="External reference (order number, PO number, etc.)",
    )
    description = models.TextField(help_text="Narrative description of the journal entry")

    status = models.CharField(max_length=10, choices=STATUSES, default=DRAFT)
    source = models.CharField(max_length=20, choices=SOURCES, default=SOURCE_MANUAL)

    source_type = models.CharField(
        max_length=30,
        choices=SourceKind.choices,
        blank=True,
        default="",
    )
    source_id = models.CharField(max_length=64, blank=True, default="")

    idempotency_key = models.CharField(
        max_length=150,
        unique=True,
        null=True,
        blank=True,
        editable=False,
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_journal_entries",
    )
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="posted_journal_entries",
    )
    posted_at = models.DateTimeField(null=True, blank=True)

    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="voided_journal_entries",
    )
    voided_at = models.DateTimeField(null=True, blank=True)
    void_reason = models.TextField(blank=True, default="")

    total_debit = models.DecimalField(
        max_digits=14, decimal_places=2, default=ZERO, editable=False
    )
    total_credit = models.DecimalField(
        max_digits=14, decimal_places=2, default=ZERO, editable=False
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-entry_date", "-entry_number"]
        indexes = [
            models.Index(fields=["entry_date", "entry_number"], name="acct_je_date_number_idx"),
            models.Index(fields=["status"], name="acct_je_status_idx"),
            models.Index(fields=["source"], name="acct_je_source_idx"),
            models.Index(fields=["source_type", "source_id"], name="acct_je_source_ref_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(entry_number=""),
                name="chk_journal_number_not_blank",
            ),
            models.CheckConstraint(
                condition=(
                    Q(source_type="", source_id="")
                    | (~Q(source_type="") & ~Q(source_id=""))
                ),
                name="chk_journal_source_ref_complete",
            ),
        ]
        verbose_name = "Journal Entry"
        verbose_name_plural = "Journal Entries"

    def __str__(self):
        return f"{self.entry_number} – {self.entry_date} ({self.status})"

    # ----------------------------
    # Source reference
    # ----------------------------
    @property
    def source_ref(self) -> SourceRef | None:
        if not self.source_type:
            return None
        return SourceRef(kind=SourceKind(self.source_type), id=self.source_id)

    @source_ref.setter
    def source_ref(self, ref: SourceRef | None) -> None:
        if ref is None:
            self.source_type = ""
            self.source_id = ""
        else:
            self.source_type = ref.kind.value
            self.source_id = ref.id

    # ----------------------------
    # State helpers
    # ----------------------------
    @property
    def is_draft(self) -> bool:
        return self.status == self.DRAFT

    @property
    def is_posted(self) -> bool:
        return self.status == self.POSTED

    @property
    def is_void(self) -> bool:
        return self.status == self.VOID

    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit

    def recalculate_totals(self) -> None:
        """
        Refresh the cached totals from the stored lines.

        The cache is never set from anywhere else; calling this twice in a row
        writes the same values.
        """
        sums = self.lines.aggregate(
            debit=Coalesce(Sum("debit"), ZERO),
            credit=Coalesce(Sum("credit"), ZERO),
        )
        self.total_debit = sums["debit"]
        self.total_credit = sums["credit"]
        JournalEntry.objects.filter(pk=self.pk).update(
            total_debit=self.total_debit,
            total_credit=self.total_credit,
        )

    def clean(self):
        self.reference = (self.reference or "").strip()
        self.description = (self.description or "").strip()
        if not self.description:
            raise ValidationError("Journal entry description is required")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if not self.is_draft:
            raise ValidationError(
                "Posted or void journal entries cannot be deleted; void or reverse them instead"
            )
        return super().delete(*args, **kwargs)


class JournalLine(models.Model):
    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )

    description = models.CharField(max_length=255, blank=True, default="")

    debit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=ZERO,
        validators=[MinValueValidator(ZERO)],
    )
    credit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=ZERO,
        validators=[MinValueValidator(ZERO)],
    )

    line_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["entry_id", "line_order", "id"]
        indexes = [
            models.Index(fields=["account", "entry"], name="acct_jl_account_entry_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_journal_line_non_negative",
            ),
            models.CheckConstraint(
                condition=(
                    (Q(debit__gt=0) & Q(credit=0)) | (Q(debit=0) & Q(credit__gt=0))
                ),
                name="chk_journal_line_one_side",
            ),
        ]
        verbose_name = "Journal Line"
        verbose_name_plural = "Journal Lines"

    def __str__(self):
        side = f"Dr {self.debit}" if self.debit else f"Cr {self.credit}"
        return f"{self.account.code} {side}"

    def clean(self):
        self.description = (self.description or "").strip()
        debit = self.debit or ZERO
        credit = self.credit or ZERO
        if debit > 0 and credit > 0:
            raise ValidationError("A journal line cannot have both debit and credit")
        if debit == 0 and credit == 0:
            raise ValidationError("A journal line must have either debit or credit")

    def save(self, *args, **kwargs):
        if self.pk and self.entry.status != JournalEntry.DRAFT:
            raise ValidationError("Lines of posted or void entries are immutable")
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.entry.status != JournalEntry.DRAFT:
            raise ValidationError("Lines of posted or void entries cannot be deleted")
        return super().delete(*args, **kwargs)
