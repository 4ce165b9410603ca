# accounting/tests/test_journal_engine.py

from __future__ import annotations

import re
from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.test import TestCase, override_settings

from accounting.models.journal import JournalEntry, JournalLine
from accounting.models.source import SourceKind, SourceRef
from accounting.services.entry_numbers import format_entry_number, generate_entry_number
from accounting.services.exceptions import (
    FiscalYearRequiredError,
    IdempotencyError,
    JournalEntryCreationError,
    UnbalancedJournalError,
)
from accounting.services.journal_entry_service import (
    as_entry_date,
    create_journal_entry,
    create_manual_entry,
)
from accounting.tests.factories import cr, deactivate, dr, line_sums, seeded_chart

ENTRY_NUMBER = re.compile(r"^JE-\d{4}-\d{6}$")


class CreateJournalEntryTests(TestCase):
    def setUp(self):
        self.accounts = seeded_chart()
        self.cash = self.accounts["1000"]
        self.sales = self.accounts["4000"]

    def _create(self, **kwargs):
        params = {
            "entry_date": date(2026, 3, 1),
            "description": "Test sale",
            "lines": [dr(self.cash, "100.00"), cr(self.sales, "100.00")],
        }
        params.update(kwargs)
        return create_journal_entry(**params)

    def test_balanced_entry_is_posted_with_lines_and_totals(self):
        entry = self._create()

        self.assertEqual(entry.status, JournalEntry.POSTED)
        self.assertIsNotNone(entry.posted_at)
        self.assertRegex(entry.entry_number, ENTRY_NUMBER)
        self.assertEqual(entry.lines.count(), 2)
        self.assertEqual(entry.total_debit, Decimal("100.00"))
        self.assertEqual(entry.total_credit, Decimal("100.00"))
        self.assertEqual(line_sums(entry), (Decimal("100.00"), Decimal("100.00")))

    def test_unbalanced_entry_writes_nothing(self):
        with self.assertRaises(UnbalancedJournalError):
            self._create(lines=[dr(self.cash, "100.00"), cr(self.sales, "90.00")])

        self.assertEqual(JournalEntry.objects.count(), 0)
        self.assertEqual(JournalLine.objects.count(), 0)

    def test_single_line_is_rejected(self):
        with self.assertRaises(JournalEntryCreationError):
            self._create(lines=[dr(self.cash, "100.00")])

    def test_line_with_both_sides_is_rejected(self):
        line = {"account": self.cash, "debit": "50.00", "credit": "50.00"}
        with self.assertRaises(JournalEntryCreationError):
            self._create(lines=[line, cr(self.sales, "0.00")])

    def test_negative_amount_is_rejected(self):
        with self.assertRaises(JournalEntryCreationError):
            self._create(lines=[dr(self.cash, "-10.00"), cr(self.sales, "-10.00")])

    def test_inactive_account_is_rejected(self):
        deactivate(self.sales)
        with self.assertRaises(JournalEntryCreationError):
            self._create()

    def test_blank_description_is_rejected(self):
        with self.assertRaises(JournalEntryCreationError):
            self._create(description="   ")

    def test_line_order_is_kept(self):
        entry = self._create(
            lines=[
                {**dr(self.cash, "60.00"), "line_order": 5},
                {**dr(self.cash, "40.00"), "line_order": 1},
                {**cr(self.sales, "100.00"), "line_order": 9},
            ]
        )
        orders = list(entry.lines.order_by("line_order").values_list("line_order", "debit"))
        self.assertEqual(orders, [(1, Decimal("40.00")), (5, Decimal("60.00")), (9, Decimal("0.00"))])

    def test_amounts_are_rounded_to_cents(self):
        entry = self._create(lines=[dr(self.cash, "10.005"), cr(self.sales, "10.005")])
        self.assertEqual(entry.total_debit, Decimal("10.01"))

    def test_source_reference_and_key_are_stored(self):
        entry = self._create(source=JournalEntry.SOURCE_SALES, source_ref=SourceRef(kind="order", id=42))

        entry.refresh_from_db()
        self.assertEqual(entry.source_type, SourceKind.ORDER)
        self.assertEqual(entry.source_id, "42")
        self.assertEqual(entry.source_ref, SourceRef(kind=SourceKind.ORDER, id="42"))
        self.assertEqual(entry.idempotency_key, "order:42")

    def test_same_business_object_cannot_post_twice(self):
        ref = SourceRef(kind=SourceKind.ORDER, id="42")
        self._create(source_ref=ref)

        with self.assertRaises(IdempotencyError):
            self._create(source_ref=ref)

        self.assertEqual(JournalEntry.objects.count(), 1)

    def test_explicit_key_wins_over_source_key(self):
        entry = self._create(
            source_ref=SourceRef(kind=SourceKind.RECURRING, id="3"),
            idempotency_key="recurring:3:2026-03-01",
        )
        self.assertEqual(entry.idempotency_key, "recurring:3:2026-03-01")
        self.assertEqual(entry.source_id, "3")

    def test_entries_without_source_have_no_key(self):
        first = self._create()
        second = self._create()
        self.assertIsNone(first.idempotency_key)
        self.assertIsNone(second.idempotency_key)

    def test_entry_numbers_are_sequential(self):
        first = self._create()
        second = self._create()

        prefix, year, value = first.entry_number.split("-")
        self.assertEqual(
            second.entry_number,
            format_entry_number(prefix=prefix, year=int(year), value=int(value) + 1),
        )

    @override_settings(ACCOUNTING_REQUIRE_FISCAL_YEAR=True)
    def test_strict_mode_requires_fiscal_year(self):
        with self.assertRaises(FiscalYearRequiredError):
            self._create()
        self.assertEqual(JournalEntry.objects.count(), 0)

    def test_strict_mode_can_be_requested_per_call(self):
        with self.assertRaises(FiscalYearRequiredError):
            self._create(require_fiscal_year=True)


class ManualEntryTests(TestCase):
    def setUp(self):
        self.accounts = seeded_chart()

    def test_manual_entry_starts_as_draft(self):
        entry = create_manual_entry(
            entry_date=date(2026, 3, 1),
            description="Owner contribution",
            lines=[dr(self.accounts["1010"], "5000"), cr(self.accounts["3000"], "5000")],
        )

        self.assertEqual(entry.status, JournalEntry.DRAFT)
        self.assertEqual(entry.source, JournalEntry.SOURCE_MANUAL)
        self.assertIsNone(entry.posted_at)
        self.assertTrue(entry.is_balanced())

    def test_draft_can_be_deleted_with_lines(self):
        entry = create_manual_entry(
            entry_date=date(2026, 3, 1),
            description="Typo",
            lines=[dr(self.accounts["1010"], "5"), cr(self.accounts["3000"], "5")],
        )
        entry.delete()
        self.assertEqual(JournalLine.objects.count(), 0)


class PostedHistoryTests(TestCase):
    def setUp(self):
        self.accounts = seeded_chart()
        self.entry = create_journal_entry(
            entry_date=date(2026, 3, 1),
            description="Posted sale",
            lines=[dr(self.accounts["1000"], "100"), cr(self.accounts["4000"], "100")],
        )

    def test_posted_entry_cannot_be_deleted(self):
        with self.assertRaises(ValidationError):
            self.entry.delete()

    def test_posted_lines_are_immutable(self):
        line = self.entry.lines.first()
        line.debit = Decimal("999.00")
        with self.assertRaises(ValidationError):
            line.save()

        with self.assertRaises(ValidationError):
            line.delete()

    def test_recalculate_totals_is_stable(self):
        self.entry.recalculate_totals()
        self.entry.recalculate_totals()
        self.entry.refresh_from_db()
        self.assertEqual(self.entry.total_debit, Decimal("100.00"))
        self.assertTrue(self.entry.is_balanced())


class EntryNumberTests(TestCase):
    def test_counter_per_prefix_and_year(self):
        with transaction.atomic():
            self.assertEqual(generate_entry_number(prefix="XX", year=2020), "XX-2020-000001")
            self.assertEqual(generate_entry_number(prefix="XX", year=2020), "XX-2020-000002")
            self.assertEqual(generate_entry_number(prefix="XX", year=2021), "XX-2021-000001")
            self.assertEqual(generate_entry_number(prefix="YY", year=2020), "YY-2020-000001")

    @override_settings(ACCOUNTING_ENTRY_NUMBER_PREFIX="GJ")
    def test_prefix_comes_from_settings(self):
        with transaction.atomic():
            number = generate_entry_number(year=2026)
        self.assertEqual(number, "GJ-2026-000001")


class EntryDateTests(TestCase):
    def test_plain_date_is_kept(self):
        self.assertEqual(as_entry_date(date(2026, 3, 1)), date(2026, 3, 1))

    def test_naive_datetime_uses_its_date(self):
        self.assertEqual(as_entry_date(datetime(2026, 3, 1, 23, 30)), date(2026, 3, 1))

    def test_aware_datetime_uses_local_date(self):
        # TIME_ZONE is UTC under test settings
        value = datetime(2026, 3, 1, 23, 30, tzinfo=dt_timezone.utc)
        self.assertEqual(as_entry_date(value), date(2026, 3, 1))
