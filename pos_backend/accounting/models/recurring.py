# accounting/models/recurring.py

"""
======================================================
PATH: accounting/models/recurring.py
======================================================
RECURRING JOURNAL TEMPLATES

A template holds a fixed, balanced line recipe and a cadence. The scheduler
(accounting/services/recurring_service.py) turns each due occurrence into
one posted journal entry.

State:
- next_run_date: the next occurrence to generate
- last_run_date: the last occurrence generated (guards double-fire)
- occurrences:   how many entries this template has produced
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q

from accounting.models.account import Account

ZERO = Decimal("0.00")


class RecurringJournalEntry(models.Model):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    FREQUENCIES = [
        (DAILY, "Daily"),
        (WEEKLY, "Weekly"),
        (MONTHLY, "Monthly"),
        (QUARTERLY, "Quarterly"),
        (YEARLY, "Yearly"),
    ]

    name = models.CharField(max_length=150)
    description = models.TextField(blank=True, default="")

    frequency = models.CharField(max_length=10, choices=FREQUENCIES, default=MONTHLY)

    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    next_run_date = models.DateField()
    last_run_date = models.DateField(null=True, blank=True)

    occurrences = models.PositiveIntegerField(default=0)
    max_occurrences = models.PositiveIntegerField(null=True, blank=True)

    is_active = models.BooleanField(default=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="recurring_journal_entries",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["next_run_date", "id"]
        indexes = [
            models.Index(fields=["is_active", "next_run_date"], name="acct_rec_active_next_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_date__isnull=True) | Q(end_date__gte=models.F("start_date")),
                name="chk_recurring_end_after_start",
            ),
        ]
        verbose_name = "Recurring Journal Entry"
        verbose_name_plural = "Recurring Journal Entries"

    def __str__(self):
        return f"{self.name} ({self.get_frequency_display()}, next {self.next_run_date})"

    @property
    def total_amount(self) -> Decimal:
        return sum((line.debit for line in self.lines.all()), ZERO)

    @property
    def is_exhausted(self) -> bool:
        return bool(self.max_occurrences) and self.occurrences >= self.max_occurrences

    def within_schedule(self, occurrence) -> bool:
        """True when `occurrence` is still inside the end date and occurrence cap."""
        if self.end_date and occurrence > self.end_date:
            return False
        return not self.is_exhausted

    def is_due(self, today) -> bool:
        if not self.is_active:
            return False
        if self.next_run_date > today:
            return False
        return self.within_schedule(self.next_run_date)

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError("Recurring entry name is required")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError("End date cannot be before start date")

    def save(self, *args, **kwargs):
        if self.next_run_date is None:
            self.next_run_date = self.start_date
        self.full_clean()
        return super().save(*args, **kwargs)


class RecurringJournalEntryLine(models.Model):
    template = models.ForeignKey(
        RecurringJournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="recurring_lines",
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
        ordering = ["template_id", "line_order", "id"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    (Q(debit__gt=0) & Q(credit=0)) | (Q(debit=0) & Q(credit__gt=0))
                ),
                name="chk_recurring_line_one_side",
            ),
        ]
        verbose_name = "Recurring Journal Line"
        verbose_name_plural = "Recurring Journal Lines"

    def __str__(self):
        side = f"Dr {self.debit}" if self.debit else f"Cr {self.credit}"
        return f"{self.template_id}: {self.account.code} {side}"

    def clean(self):
        self.description = (self.description or "").strip()
        debit = self.debit or ZERO
        credit = self.credit or ZERO
        if debit > 0 and credit > 0:
            raise ValidationError("A template line cannot have both debit and credit")
        if debit == 0 and credit == 0:
            raise ValidationError("A template line must have either debit or credit")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
