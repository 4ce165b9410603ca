# accounting/models/sequence.py

"""
======================================================
PATH: accounting/models/sequence.py
======================================================
ENTRY NUMBER SEQUENCE

One counter row per (prefix, year). The engine locks the row with
SELECT ... FOR UPDATE inside the entry's transaction, so two concurrent
builders can never be handed the same number.
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q


class EntryNumberSequence(models.Model):
    prefix = models.CharField(max_length=10)
    year = models.PositiveIntegerField()
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["prefix", "year"]
        constraints = [
            models.UniqueConstraint(
                fields=["prefix", "year"],
                name="uniq_entry_sequence_prefix_year",
            ),
            models.CheckConstraint(
                condition=~Q(prefix=""),
                name="chk_entry_sequence_prefix_not_blank",
            ),
        ]
        verbose_name = "Entry Number Sequence"
        verbose_name_plural = "Entry Number Sequences"

    def __str__(self):
        return f"{self.prefix}-{self.year}: {self.last_value}"
