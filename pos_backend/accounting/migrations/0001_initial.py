"""
======================================================
PATH: accounting/migrations/0001_initial.py
======================================================
MIGRATION: INITIAL ACCOUNTING SCHEMA

Creates:
- Account (chart of accounts, primary-per-subtype constraint)
- EntryNumberSequence (locked per-year counters)
- FiscalYear (+ closing entry link, added last to break the cycle)
- JournalEntry / JournalLine
- RecurringJournalEntry / RecurringJournalEntryLine
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.core.validators
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        # ------------------------------------------------------------------
        # Account
        # ------------------------------------------------------------------
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=150)),
                (
                    "name_local",
                    models.CharField(blank=True, default="", help_text="Localized display name", max_length=150),
                ),
                ("description", models.TextField(blank=True, default="")),
                (
                    "account_type",
                    models.CharField(
                        choices=[
                            ("asset", "Asset"),
                            ("liability", "Liability"),
                            ("equity", "Equity"),
                            ("income", "Income"),
                            ("expense", "Expense"),
                        ],
                        max_length=20,
                    ),
                ),
                ("subtype", models.CharField(db_index=True, max_length=40)),
                (
                    "opening_balance",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Signed balance carried in before the first journal line",
                        max_digits=14,
                    ),
                ),
                ("is_system", models.BooleanField(default=False, help_text="Seeded account; cannot be deleted")),
                ("is_active", models.BooleanField(default=True)),
                (
                    "is_primary",
                    models.BooleanField(default=False, help_text="Canonical account returned for its subtype"),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Account",
                "verbose_name_plural": "Accounts",
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["account_type"], name="acct_account_type_idx"),
                    models.Index(fields=["subtype", "is_active"], name="acct_subtype_active_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("code", ""), _negated=True), name="chk_account_code_not_blank"),
                    models.CheckConstraint(condition=models.Q(("name", ""), _negated=True), name="chk_account_name_not_blank"),
                    models.UniqueConstraint(
                        condition=models.Q(("is_primary", True)),
                        fields=("subtype",),
                        name="uniq_account_primary_per_subtype",
                    ),
                ],
            },
        ),
        # ------------------------------------------------------------------
        # EntryNumberSequence
        # ------------------------------------------------------------------
        migrations.CreateModel(
            name="EntryNumberSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("prefix", models.CharField(max_length=10)),
                ("year", models.PositiveIntegerField()),
                ("last_value", models.PositiveIntegerField(default=0)),
            ],
            options={
                "verbose_name": "Entry Number Sequence",
                "verbose_name_plural": "Entry Number Sequences",
                "ordering": ["prefix", "year"],
                "constraints": [
                    models.UniqueConstraint(fields=("prefix", "year"), name="uniq_entry_sequence_prefix_year"),
                    models.CheckConstraint(
                        condition=models.Q(("prefix", ""), _negated=True),
                        name="chk_entry_sequence_prefix_not_blank",
                    ),
                ],
            },
        ),
        # ------------------------------------------------------------------
        # FiscalYear (closing_entry added below)
        # ------------------------------------------------------------------
        migrations.CreateModel(
            name="FiscalYear",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=50, unique=True)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("is_closed", models.BooleanField(default=False)),
                ("is_current", models.BooleanField(default=False)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "closed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="closed_fiscal_years",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Fiscal Year",
                "verbose_name_plural": "Fiscal Years",
                "ordering": ["-start_date"],
                "indexes": [
                    models.Index(fields=["start_date", "end_date"], name="acct_fy_dates_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_date__gt", models.F("start_date"))),
                        name="chk_fiscal_year_end_after_start",
                    ),
                ],
            },
        ),
        # ------------------------------------------------------------------
        # JournalEntry
        # ------------------------------------------------------------------
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entry_number", models.CharField(editable=False, max_length=30, unique=True)),
                ("entry_date", models.DateField(help_text="Accounting effective date")),
                (
                    "reference",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="External reference (order number, PO number, etc.)",
                        max_length=100,
                    ),
                ),
                ("description", models.TextField(help_text="Narrative description of the journal entry")),
                (
                    "status",
                    models.CharField(
                        choices=[("draft", "Draft"), ("posted", "Posted"), ("void", "Void")],
                        default="draft",
                        max_length=10,
                    ),
                ),
                (
                    "source",
                    models.CharField(
                        choices=[
                            ("manual", "Manual"),
                            ("sales", "Sales"),
                            ("expense", "Expense"),
                            ("purchase", "Purchase"),
                            ("refund", "Refund"),
                            ("recurring", "Recurring"),
                            ("adjustment", "Adjustment"),
                            ("closing", "Year-end closing"),
                        ],
                        default="manual",
                        max_length=20,
                    ),
                ),
                (
                    "source_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("order", "Order"),
                            ("expense", "Expense"),
                            ("purchase_order", "Purchase order"),
                            ("refund", "Refund"),
                            ("recurring", "Recurring template"),
                            ("journal_entry", "Journal entry"),
                            ("fiscal_year", "Fiscal year"),
                        ],
                        default="",
                        max_length=30,
                    ),
                ),
                ("source_id", models.CharField(blank=True, default="", max_length=64)),
                (
                    "idempotency_key",
                    models.CharField(blank=True, editable=False, max_length=150, null=True, unique=True),
                ),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.TextField(blank=True, default="")),
                (
                    "total_debit",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=14),
                ),
                (
                    "total_credit",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=14),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_journal_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "fiscal_year",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="journal_entries",
                        to="accounting.fiscalyear",
                    ),
                ),
                (
                    "posted_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="posted_journal_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "voided_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="voided_journal_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Journal Entry",
                "verbose_name_plural": "Journal Entries",
                "ordering": ["-entry_date", "-entry_number"],
                "indexes": [
                    models.Index(fields=["entry_date", "entry_number"], name="acct_je_date_number_idx"),
                    models.Index(fields=["status"], name="acct_je_status_idx"),
                    models.Index(fields=["source"], name="acct_je_source_idx"),
                    models.Index(fields=["source_type", "source_id"], name="acct_je_source_ref_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("entry_number", ""), _negated=True),
                        name="chk_journal_number_not_blank",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("source_id", ""), ("source_type", "")),
                            models.Q(
                                models.Q(("source_type", ""), _negated=True),
                                models.Q(("source_id", ""), _negated=True),
                            ),
                            _connector="OR",
                        ),
                        name="chk_journal_source_ref_complete",
                    ),
                ],
            },
        ),
        # ------------------------------------------------------------------
        # JournalLine
        # ------------------------------------------------------------------
        migrations.CreateModel(
            name="JournalLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                (
                    "debit",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "credit",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("line_order", models.PositiveIntegerField(default=0)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="journal_lines",
                        to="accounting.account",
                    ),
                ),
                (
                    "entry",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="accounting.journalentry",
                    ),
                ),
            ],
            options={
                "verbose_name": "Journal Line",
                "verbose_name_plural": "Journal Lines",
                "ordering": ["entry_id", "line_order", "id"],
                "indexes": [
                    models.Index(fields=["account", "entry"], name="acct_jl_account_entry_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("debit__gte", 0), ("credit__gte", 0)),
                        name="chk_journal_line_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("debit__gt", 0), ("credit", 0)),
                            models.Q(("debit", 0), ("credit__gt", 0)),
                            _connector="OR",
                        ),
                        name="chk_journal_line_one_side",
                    ),
                ],
            },
        ),
        # ------------------------------------------------------------------
        # RecurringJournalEntry
        # ------------------------------------------------------------------
        migrations.CreateModel(
            name="RecurringJournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "frequency",
                    models.CharField(
                        choices=[
                            ("daily", "Daily"),
                            ("weekly", "Weekly"),
                            ("monthly", "Monthly"),
                            ("quarterly", "Quarterly"),
                            ("yearly", "Yearly"),
                        ],
                        default="monthly",
                        max_length=10,
                    ),
                ),
                ("start_date", models.DateField()),
                ("end_date", models.DateField(blank=True, null=True)),
                ("next_run_date", models.DateField()),
                ("last_run_date", models.DateField(blank=True, null=True)),
                ("occurrences", models.PositiveIntegerField(default=0)),
                ("max_occurrences", models.PositiveIntegerField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="recurring_journal_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Recurring Journal Entry",
                "verbose_name_plural": "Recurring Journal Entries",
                "ordering": ["next_run_date", "id"],
                "indexes": [
                    models.Index(fields=["is_active", "next_run_date"], name="acct_rec_active_next_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("end_date__isnull", True),
                            ("end_date__gte", models.F("start_date")),
                            _connector="OR",
                        ),
                        name="chk_recurring_end_after_start",
                    ),
                ],
            },
        ),
        # ------------------------------------------------------------------
        # RecurringJournalEntryLine
        # ------------------------------------------------------------------
        migrations.CreateModel(
            name="RecurringJournalEntryLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                (
                    "debit",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "credit",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("line_order", models.PositiveIntegerField(default=0)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="recurring_lines",
                        to="accounting.account",
                    ),
                ),
                (
                    "template",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="accounting.recurringjournalentry",
                    ),
                ),
            ],
            options={
                "verbose_name": "Recurring Journal Line",
                "verbose_name_plural": "Recurring Journal Lines",
                "ordering": ["template_id", "line_order", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("debit__gt", 0), ("credit", 0)),
                            models.Q(("debit", 0), ("credit__gt", 0)),
                            _connector="OR",
                        ),
                        name="chk_recurring_line_one_side",
                    ),
                ],
            },
        ),
        # ------------------------------------------------------------------
        # FiscalYear.closing_entry
        # ------------------------------------------------------------------
        migrations.AddField(
            model_name="fiscalyear",
            name="closing_entry",
            field=models.OneToOneField(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.PROTECT,
                related_name="closed_fiscal_year",
                to="accounting.journalentry",
            ),
        ),
    ]
