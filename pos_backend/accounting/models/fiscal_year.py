# accounting/models/fiscal_year.py

"""
======================================================
PATH: accounting/models/fiscal_year.py
======================================================
FISCAL YEAR MODEL

An accounting period [start_date, end_date] (both inclusive).

Guarantees:
- end_date strictly after start_date
- No two fiscal years overlap
- Closed years accept no further postings (enforced by the engine)
"""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q


class FiscalYear(models.Model):
    name = models.CharField(max_length=50, unique=True)
    start_date = models.DateField()
    end_date = models.DateField()

    is_closed = models.BooleanField(default=False)
    is_current = models.BooleanField(default=False)

    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="closed_fiscal_years",
    )
    closing_entry = models.OneToOneField(
        "accounting.JournalEntry",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="closed_fiscal_year",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-start_date"]
        verbose_name = "Fiscal Year"
        verbose_name_plural = "Fiscal Years"
        indexes = [
            models.Index(fields=["start_date", "end_date"], name="acct_fy_dates_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_date__gt=F("start_date")),
                name="chk_fiscal_year_end_after_start",
            ),
        ]

    def __str__(self):
        state = "closed" if self.is_closed else "open"
        return f"{self.name} ({self.start_date} → {self.end_date}, {state})"

    def contains(self, day) -> bool:
        return self.start_date <= day <= self.end_date

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError("Fiscal year name is required")

        if self.start_date and self.end_date:
            if self.end_date <= self.start_date:
                raise ValidationError("Fiscal year end date must be after its start date")

            overlapping = FiscalYear.objects.filter(
                start_date__lte=self.end_date,
                end_date__gte=self.start_date,
            )
            if self.pk:
                overlapping = overlapping.exclude(pk=self.pk)
            clash = overlapping.first()
            if clash is not None:
                raise ValidationError(f"Fiscal year overlaps with {clash.name}")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
