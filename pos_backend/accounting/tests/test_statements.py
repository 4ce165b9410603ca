# accounting/tests/test_statements.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.test import TestCase

from accounting.services.balance_sheet_service import get_balance_sheet
from accounting.services.fiscal_years import close_fiscal_year, create_fiscal_year
from accounting.services.journal_entry_service import create_journal_entry
from accounting.services.profit_and_loss_service import get_income_statement
from accounting.tests.factories import cr, deactivate, dr, make_draft, seeded_chart


def _amounts(rows: list[dict], field: str) -> dict[str, Decimal]:
    return {row["code"]: row[field] for row in rows}


class StatementTestCase(TestCase):
    def setUp(self):
        self.accounts = seeded_chart()
        self.fy = create_fiscal_year(name="FY2025", start_date=date(2025, 1, 1), end_date=date(2025, 12, 31))

        for code in ("1000", "3000"):
            account = self.accounts[code]
            account.opening_balance = Decimal("5000.00")
            account.save()

        self._book(date(2025, 2, 1), "Stock purchase", "1200", "2000", 6000)
        self._book(date(2025, 3, 1), "Cash sale", "1000", "4000", 10000)
        self._book(date(2025, 3, 1), "Cost of sale", "5000", "1200", 4000)
        self._book(date(2025, 4, 1), "April rent", "5300", "1000", 1500)
        self._book(date(2025, 4, 15), "Wages", "5200", "1000", 500)
        self._book(date(2025, 5, 1), "Scrap sale", "1000", "4100", 200)
        self._book(date(2025, 6, 1), "Written off", "5900", "1000", 100)

    def _book(self, day: date, description: str, debit_code: str, credit_code: str, amount):
        return create_journal_entry(
            entry_date=day,
            description=description,
            lines=[dr(self.accounts[debit_code], amount), cr(self.accounts[credit_code], amount)],
        )


class IncomeStatementTests(StatementTestCase):
    def test_full_year(self):
        report = get_income_statement(start=date(2025, 1, 1), end=date(2025, 12, 31))

        self.assertEqual(report["total_revenue"], Decimal("10000.00"))
        self.assertEqual(report["total_cogs"], Decimal("4000.00"))
        self.assertEqual(report["gross_profit"], Decimal("6000.00"))
        self.assertEqual(report["total_operating_expenses"], Decimal("2000.00"))
        self.assertEqual(report["operating_income"], Decimal("4000.00"))
        self.assertEqual(report["total_other_income"], Decimal("200.00"))
        self.assertEqual(report["total_other_expenses"], Decimal("100.00"))
        self.assertEqual(report["net_income"], Decimal("4100.00"))

    def test_lines_are_grouped_by_subtype(self):
        report = get_income_statement(start=date(2025, 1, 1), end=date(2025, 12, 31))

        self.assertEqual(_amounts(report["sales_revenue"], "amount"), {"4000": Decimal("10000.00")})
        self.assertEqual(_amounts(report["other_income"], "amount"), {"4100": Decimal("200.00")})
        self.assertEqual(
            _amounts(report["operating_expenses"], "amount"),
            {"5100": Decimal("0.00"), "5300": Decimal("1500.00"), "5400": Decimal("0.00")},
        )
        self.assertEqual(_amounts(report["payroll_expenses"], "amount"), {"5200": Decimal("500.00")})
        self.assertEqual(_amounts(report["other_expenses"], "amount"), {"5900": Decimal("100.00")})
        self.assertEqual(report["sales_revenue"][0]["name_local"], self.accounts["4000"].name_local)

    def test_period_bounds_are_inclusive(self):
        report = get_income_statement(start=date(2025, 4, 1), end=date(2025, 4, 15))

        self.assertEqual(report["total_revenue"], Decimal("0.00"))
        self.assertEqual(report["total_operating_expenses"], Decimal("2000.00"))
        self.assertEqual(report["net_income"], Decimal("-2000.00"))

    def test_drafts_are_ignored(self):
        make_draft(
            entry_number="JE-DRAFT-9",
            entry_date=date(2025, 7, 1),
            lines=[(self.accounts["1000"], "999", "0"), (self.accounts["4000"], "0", "999")],
        )

        self.assertEqual(get_income_statement()["total_revenue"], Decimal("10000.00"))

    def test_closing_entry_is_not_income(self):
        close_fiscal_year(self.fy)

        report = get_income_statement(start=date(2025, 1, 1), end=date(2025, 12, 31))

        self.assertEqual(report["total_revenue"], Decimal("10000.00"))
        self.assertEqual(report["net_income"], Decimal("4100.00"))

    def test_inactive_accounts_without_activity_are_hidden(self):
        deactivate(self.accounts["5400"])
        deactivate(self.accounts["5300"])

        report = get_income_statement()

        self.assertEqual(
            _amounts(report["operating_expenses"], "amount"),
            {"5100": Decimal("0.00"), "5300": Decimal("1500.00")},
        )


class BalanceSheetTests(StatementTestCase):
    def test_open_year_reports_current_earnings(self):
        sheet = get_balance_sheet(as_of=date(2025, 12, 31))

        self.assertEqual(_amounts(sheet["assets"], "balance")["1000"], Decimal("13100.00"))
        self.assertEqual(_amounts(sheet["assets"], "balance")["1200"], Decimal("2000.00"))
        self.assertEqual(sheet["total_assets"], Decimal("15100.00"))
        self.assertEqual(sheet["total_liabilities"], Decimal("6000.00"))
        self.assertEqual(sheet["current_earnings"], Decimal("4100.00"))
        self.assertEqual(sheet["total_equity"], Decimal("9100.00"))
        self.assertEqual(sheet["total_liabilities_and_equity"], Decimal("15100.00"))
        self.assertTrue(sheet["is_balanced"])

    def test_closing_moves_earnings_into_retained_earnings(self):
        close_fiscal_year(self.fy)

        sheet = get_balance_sheet(as_of=date(2025, 12, 31))

        self.assertEqual(sheet["current_earnings"], Decimal("0.00"))
        self.assertEqual(_amounts(sheet["equity"], "balance")["3100"], Decimal("4100.00"))
        self.assertEqual(sheet["total_equity"], Decimal("9100.00"))
        self.assertTrue(sheet["is_balanced"])

    def test_snapshot_ignores_later_lines(self):
        sheet = get_balance_sheet(as_of=date(2025, 2, 28))

        self.assertEqual(sheet["total_assets"], Decimal("11000.00"))
        self.assertEqual(sheet["total_liabilities"], Decimal("6000.00"))
        self.assertEqual(sheet["total_equity"], Decimal("5000.00"))
        self.assertEqual(sheet["current_earnings"], Decimal("0.00"))
        self.assertTrue(sheet["is_balanced"])

    def test_income_and_expense_accounts_are_not_listed(self):
        sheet = get_balance_sheet(as_of=date(2025, 12, 31))

        listed = {row["code"] for section in ("assets", "liabilities", "equity") for row in sheet[section]}
        self.assertFalse(any(code.startswith(("4", "5")) for code in listed))

    def test_inactive_zero_balance_accounts_are_hidden(self):
        deactivate(self.accounts["1300"])

        sheet = get_balance_sheet(as_of=date(2025, 12, 31))

        self.assertNotIn("1300", _amounts(sheet["assets"], "balance"))
        self.assertIn("1010", _amounts(sheet["assets"], "balance"))
