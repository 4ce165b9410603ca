# accounting/management/commands/seed_default_accounts.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from accounting.models.account import Account
from accounting.services.account_registry import seed_default_accounts


class Command(BaseCommand):
    help = "Seed the standard chart of accounts (idempotent: existing codes are left alone)"

    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING("Seeding default chart of accounts"))

        created = seed_default_accounts()

        self.stdout.write(f"Created: {created}")
        self.stdout.write(f"Total accounts: {Account.objects.count()}")
        self.stdout.write(self.style.SUCCESS("Default chart of accounts ready"))
