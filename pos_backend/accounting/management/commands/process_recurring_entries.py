# accounting/management/commands/process_recurring_entries.py

from __future__ import annotations

from datetime import datetime

from django.core.management.base import BaseCommand, CommandError

from accounting.services.posting import get_accounting_service
from accounting.services.recurring_service import run_due_entries


def _parse_date(s: str | None):
    if not s:
        return None
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        return None


class Command(BaseCommand):
    help = "Generate journal entries for every due recurring template (safe to run repeatedly)."

    def add_arguments(self, parser):
        parser.add_argument("--date", dest="run_date", help="Treat this day as today (YYYY-MM-DD)")
        parser.add_argument("--dry-run", action="store_true", help="List due templates without writing to DB")

    def handle(self, *args, **options):
        run_date = _parse_date(options.get("run_date"))
        if options.get("run_date") and not run_date:
            raise CommandError("Invalid --date. Use YYYY-MM-DD")

        dry_run = bool(options.get("dry_run"))
        service = get_accounting_service()

        self.stdout.write(self.style.MIGRATE_HEADING("Process recurring journal entries"))

        if not service.is_accounting_enabled():
            self.stdout.write(self.style.WARNING("Accounting is disabled; nothing to do."))
            return

        if dry_run:
            self.stdout.write("DRY RUN: no database changes will be saved.\n")

        result = run_due_entries(service=service, today=run_date, dry_run=dry_run)

        for item in result.entries:
            if dry_run:
                self.stdout.write(f"DUE  {item.name} (next {item.next_run_date})")
            else:
                self.stdout.write(f"POST {item.entry_number} {item.entry_date} {item.description}")

        self.stdout.write("\n--- Summary ---")
        label = "Due" if dry_run else "Created"
        self.stdout.write(f"{label}: {result.created}")
        self.stdout.write(f"Skipped: {result.skipped}")
        self.stdout.write(f"Failed:  {result.failed}")

        if result.errors:
            self.stdout.write(self.style.ERROR("\nErrors:"))
            for err in result.errors:
                self.stdout.write(self.style.ERROR(f"- {err}"))
        else:
            self.stdout.write(self.style.SUCCESS("\nDone."))
