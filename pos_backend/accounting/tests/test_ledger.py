# accounting/tests/test_ledger.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from accounting.models.journal import JournalEntry
from accounting.models.source import SourceKind
from accounting.services.balance_service import get_account_balance, get_trial_balance, ledger_for
from accounting.services.exceptions import IdempotencyError, JournalStateError, UnbalancedJournalError
from accounting.services.journal_entry_service import create_journal_entry, create_manual_entry
from accounting.services.ledger_service import post_entry, reverse_entry, void_entry
from accounting.tests.factories import cr, dr, line_sums, make_draft, seeded_chart

User = get_user_model()


def _post(day: date, lines: list, description: str = "Entry") -> JournalEntry:
    return create_journal_entry(entry_date=day, description=description, lines=lines)


class PostEntryTests(TestCase):
    def setUp(self):
        self.accounts = seeded_chart()
        self.user = User.objects.create_user(username="accountant", password="pw")

    def test_draft_becomes_posted(self):
        draft = create_manual_entry(
            entry_date=date(2026, 3, 1),
            description="Capital",
            lines=[dr(self.accounts["1010"], "1000"), cr(self.accounts["3000"], "1000")],
        )
        self.assertEqual(get_account_balance(self.accounts["1010"]), Decimal("0.00"))

        entry = post_entry(draft, actor=self.user)

        self.assertEqual(entry.status, JournalEntry.POSTED)
        self.assertEqual(entry.posted_by, self.user)
        self.assertIsNotNone(entry.posted_at)
        self.assertEqual(get_account_balance(self.accounts["1010"]), Decimal("1000.00"))

    def test_posted_entry_cannot_be_posted_again(self):
        entry = _post(date(2026, 3, 1), [dr(self.accounts["1000"], 10), cr(self.accounts["4000"], 10)])
        with self.assertRaises(JournalStateError):
            post_entry(entry)

    def test_draft_with_one_line_cannot_be_posted(self):
        draft = make_draft(
            entry_number="T-1",
            entry_date=date(2026, 3, 1),
            lines=[(self.accounts["1000"], "10.00", "0.00")],
        )
        with self.assertRaises(JournalStateError):
            post_entry(draft)

    def test_unbalanced_draft_cannot_be_posted(self):
        draft = make_draft(
            entry_number="T-2",
            entry_date=date(2026, 3, 1),
            lines=[
                (self.accounts["1000"], "10.00", "0.00"),
                (self.accounts["4000"], "0.00", "9.00"),
            ],
        )
        with self.assertRaises(UnbalancedJournalError):
            post_entry(draft)

        draft.refresh_from_db()
        self.assertEqual(draft.status, JournalEntry.DRAFT)


class VoidEntryTests(TestCase):
    def setUp(self):
        self.accounts = seeded_chart()
        self.entry = _post(date(2026, 3, 1), [dr(self.accounts["1000"], 250), cr(self.accounts["4000"], 250)])

    def test_void_keeps_lines_and_stops_counting(self):
        user = User.objects.create_user(username="manager", password="pw")

        entry = void_entry(self.entry, reason="Wrong till", actor=user)

        self.assertEqual(entry.status, JournalEntry.VOID)
        self.assertEqual(entry.void_reason, "Wrong till")
        self.assertEqual(entry.voided_by, user)
        self.assertIsNotNone(entry.voided_at)
        self.assertEqual(entry.lines.count(), 2)
        self.assertEqual(get_account_balance(self.accounts["1000"]), Decimal("0.00"))

    def test_void_entry_cannot_be_voided_again(self):
        void_entry(self.entry)
        with self.assertRaises(JournalStateError):
            void_entry(self.entry)

    def test_draft_can_be_voided(self):
        draft = create_manual_entry(
            entry_date=date(2026, 3, 2),
            description="Not needed",
            lines=[dr(self.accounts["1000"], 5), cr(self.accounts["4000"], 5)],
        )
        self.assertEqual(void_entry(draft).status, JournalEntry.VOID)

    def test_void_entry_cannot_be_posted(self):
        void_entry(self.entry)
        with self.assertRaises(JournalStateError):
            post_entry(self.entry)


class ReverseEntryTests(TestCase):
    def setUp(self):
        self.accounts = seeded_chart()
        self.entry = _post(
            date(2026, 3, 1),
            [
                dr(self.accounts["1000"], 400, "Till"),
                dr(self.accounts["1010"], 600, "Card"),
                cr(self.accounts["4000"], 1000, "Sales"),
            ],
            description="Daily takings",
        )

    def test_reversal_mirrors_every_line(self):
        reversal = reverse_entry(self.entry, entry_date=date(2026, 3, 2))

        self.assertEqual(reversal.status, JournalEntry.POSTED)
        self.assertEqual(reversal.source, JournalEntry.SOURCE_ADJUSTMENT)
        self.assertEqual(reversal.source_type, SourceKind.JOURNAL_ENTRY)
        self.assertEqual(reversal.source_id, str(self.entry.pk))
        self.assertEqual(reversal.reference, f"REV-{self.entry.entry_number}")
        self.assertEqual(reversal.entry_date, date(2026, 3, 2))

        original = list(self.entry.lines.order_by("line_order").values_list("account__code", "debit", "credit"))
        mirrored = list(reversal.lines.order_by("line_order").values_list("account__code", "credit", "debit"))
        self.assertEqual(original, mirrored)
        self.assertEqual(line_sums(reversal), (Decimal("1000.00"), Decimal("1000.00")))

    def test_original_is_untouched_and_balances_net_to_zero(self):
        reverse_entry(self.entry)

        self.entry.refresh_from_db()
        self.assertEqual(self.entry.status, JournalEntry.POSTED)
        for code in ("1000", "1010", "4000"):
            self.assertEqual(get_account_balance(self.accounts[code]), Decimal("0.00"))

    def test_entry_can_only_be_reversed_once(self):
        reverse_entry(self.entry)
        with self.assertRaises(IdempotencyError):
            reverse_entry(self.entry)

    def test_only_posted_entries_can_be_reversed(self):
        void_entry(self.entry)
        with self.assertRaises(JournalStateError):
            reverse_entry(self.entry)


class LedgerTests(TestCase):
    def setUp(self):
        self.accounts = seeded_chart()
        self.cash = self.accounts["1000"]
        self.sales = self.accounts["4000"]

        self.cash.opening_balance = Decimal("100.00")
        self.cash.save()

        _post(date(2026, 1, 5), [dr(self.cash, 50), cr(self.sales, 50)])
        _post(date(2026, 1, 20), [dr(self.accounts["5100"], 30), cr(self.cash, 30)])
        _post(date(2026, 2, 3), [dr(self.cash, 200), cr(self.sales, 200)])

    def test_running_balance(self):
        ledger = ledger_for(self.cash)

        self.assertEqual(ledger.opening_balance, Decimal("100.00"))
        self.assertEqual(
            [row.running_balance for row in ledger.rows],
            [Decimal("150.00"), Decimal("120.00"), Decimal("320.00")],
        )
        self.assertEqual([row.net for row in ledger.rows], [Decimal("50"), Decimal("-30"), Decimal("200")])
        self.assertEqual(ledger.closing_balance, Decimal("320.00"))

    def test_periods_are_continuous(self):
        january = ledger_for(self.cash, start=date(2026, 1, 1), end=date(2026, 1, 15))
        rest = ledger_for(self.cash, start=date(2026, 1, 16), end=date(2026, 2, 28))

        self.assertEqual(len(january.rows), 1)
        self.assertEqual(len(rest.rows), 2)
        self.assertEqual(january.closing_balance, rest.opening_balance)
        self.assertEqual(rest.closing_balance, get_account_balance(self.cash))

    def test_credit_normal_account_sign(self):
        ledger = ledger_for(self.sales, end=date(2026, 1, 31))
        self.assertEqual(ledger.closing_balance, Decimal("50.00"))
        self.assertEqual(get_account_balance(self.sales), Decimal("250.00"))

    def test_balance_as_of_includes_that_day(self):
        self.assertEqual(get_account_balance(self.cash, as_of=date(2026, 1, 20)), Decimal("120.00"))
        self.assertEqual(get_account_balance(self.cash, as_of=date(2026, 1, 4)), Decimal("100.00"))

    def test_drafts_and_void_entries_are_ignored(self):
        create_manual_entry(
            entry_date=date(2026, 1, 10),
            description="Pending",
            lines=[dr(self.cash, 999), cr(self.sales, 999)],
        )
        voided = _post(date(2026, 1, 11), [dr(self.cash, 888), cr(self.sales, 888)])
        void_entry(voided)

        self.assertEqual(len(ledger_for(self.cash).rows), 3)
        self.assertEqual(get_account_balance(self.cash), Decimal("320.00"))

    def test_end_before_start_is_rejected(self):
        with self.assertRaises(ValueError):
            ledger_for(self.cash, start=date(2026, 2, 1), end=date(2026, 1, 1))


class TrialBalanceTests(TestCase):
    def setUp(self):
        self.accounts = seeded_chart()

    def test_trial_balance_is_balanced(self):
        for code, amount in (("1000", "500.00"), ("3000", "500.00")):
            account = self.accounts[code]
            account.opening_balance = Decimal(amount)
            account.save()

        _post(date(2026, 1, 5), [dr(self.accounts["1000"], 1000), cr(self.accounts["4000"], 1000)])
        _post(date(2026, 1, 6), [dr(self.accounts["5000"], 400), cr(self.accounts["1200"], 400)])
        _post(date(2026, 1, 7), [dr(self.accounts["1200"], 700), cr(self.accounts["2000"], 700)])

        report = get_trial_balance()

        self.assertTrue(report["is_balanced"])
        self.assertEqual(report["total_debit_balance"], Decimal("2200.00"))
        self.assertEqual(report["total_credit_balance"], Decimal("2200.00"))

        rows = {row["code"]: row for row in report["rows"]}
        self.assertEqual(rows["1000"]["debit_balance"], Decimal("1500.00"))
        self.assertEqual(rows["4000"]["credit_balance"], Decimal("1000.00"))
        self.assertNotIn("1010", rows)

    def test_period_trial_balance_reports_movement_only(self):
        self.accounts["1000"].opening_balance = Decimal("500.00")
        self.accounts["1000"].save()
        _post(date(2026, 1, 5), [dr(self.accounts["1000"], 80), cr(self.accounts["4000"], 80)])
        _post(date(2026, 2, 5), [dr(self.accounts["1000"], 20), cr(self.accounts["4000"], 20)])

        report = get_trial_balance(start=date(2026, 2, 1), end=date(2026, 2, 28))

        rows = {row["code"]: row for row in report["rows"]}
        self.assertEqual(rows["1000"]["balance"], Decimal("20.00"))
        self.assertTrue(report["is_balanced"])
