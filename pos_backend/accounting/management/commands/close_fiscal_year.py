# accounting/management/commands/close_fiscal_year.py

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from accounting.models.account import Account
from accounting.models.fiscal_year import FiscalYear
from accounting.services.exceptions import AccountingServiceError
from accounting.services.fiscal_years import close_fiscal_year


class Command(BaseCommand):
    help = "Close a fiscal year: post the closing entry to retained earnings and lock the year."

    def add_arguments(self, parser):
        parser.add_argument("fiscal_year_id", type=int)
        parser.add_argument(
            "--retained-earnings-code",
            dest="retained_earnings_code",
            help="Account code receiving net income (defaults to the retained earnings account)",
        )

    def handle(self, *args, **options):
        try:
            fiscal_year = FiscalYear.objects.get(pk=options["fiscal_year_id"])
        except FiscalYear.DoesNotExist as exc:
            raise CommandError(f"Fiscal year {options['fiscal_year_id']} not found") from exc

        retained_earnings = None
        code = (options.get("retained_earnings_code") or "").strip()
        if code:
            try:
                retained_earnings = Account.objects.get(
                    code=code,
                    is_active=True,
                    account_type=Account.EQUITY,
                )
            except Account.DoesNotExist as exc:
                raise CommandError(f"No active equity account with code {code}") from exc

        self.stdout.write(self.style.MIGRATE_HEADING(f"Closing fiscal year {fiscal_year.name}"))

        try:
            fiscal_year = close_fiscal_year(fiscal_year, retained_earnings=retained_earnings)
        except AccountingServiceError as exc:
            raise CommandError(str(exc)) from exc

        if fiscal_year.closing_entry:
            entry = fiscal_year.closing_entry
            self.stdout.write(
                f"Closing entry: {entry.entry_number} "
                f"(debit={entry.total_debit} credit={entry.total_credit})"
            )
        else:
            self.stdout.write("No income/expense activity; closed without an entry.")

        self.stdout.write(self.style.SUCCESS(f"Fiscal year {fiscal_year.name} closed"))
