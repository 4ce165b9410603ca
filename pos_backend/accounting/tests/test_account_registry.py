# accounting/tests/test_account_registry.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.test import TestCase

from accounting.models.account import Account
from accounting.services import account_registry as registry
from accounting.services.exceptions import AccountResolutionError
from accounting.tests.factories import deactivate, seeded_chart


class SeedDefaultAccountsTests(TestCase):
    def test_seeds_full_chart_once(self):
        self.assertEqual(registry.seed_default_accounts(), len(registry.DEFAULT_ACCOUNTS))
        self.assertEqual(Account.objects.count(), 19)

        self.assertEqual(registry.seed_default_accounts(), 0)
        self.assertEqual(Account.objects.count(), 19)

    def test_existing_accounts_are_left_alone(self):
        Account.objects.create(
            code="1000",
            name="Till",
            account_type=Account.ASSET,
            subtype=registry.CASH,
            is_primary=True,
        )

        created = registry.seed_default_accounts()

        self.assertEqual(created, 18)
        till = Account.objects.get(code="1000")
        self.assertEqual(till.name, "Till")
        self.assertFalse(till.is_system)

    def test_localized_names_are_seeded(self):
        accounts = seeded_chart()
        self.assertEqual(accounts["1000"].name_local, "ငွေသား")
        self.assertEqual(accounts["4000"].name, "Sales Revenue")

    def test_system_accounts_are_primary_for_their_subtype(self):
        accounts = seeded_chart()
        self.assertTrue(accounts["5100"].is_primary)
        self.assertFalse(accounts["5300"].is_primary)
        self.assertFalse(accounts["1300"].is_primary)


class FindBySubtypeTests(TestCase):
    def setUp(self):
        self.accounts = seeded_chart()

    def test_returns_primary_account(self):
        self.assertEqual(registry.find_by_subtype(registry.CASH), self.accounts["1000"])
        self.assertEqual(registry.find_by_subtype(registry.OPERATING_EXPENSE), self.accounts["5100"])

    def test_single_non_primary_account_is_returned(self):
        self.assertEqual(registry.find_by_subtype("prepaid"), self.accounts["1300"])

    def test_missing_subtype_returns_none(self):
        self.assertIsNone(registry.find_by_subtype("other_asset"))

    def test_inactive_accounts_are_ignored(self):
        deactivate(self.accounts["1000"])
        self.assertIsNone(registry.find_by_subtype(registry.CASH))

    def test_ambiguous_subtype_raises(self):
        Account.objects.create(
            code="1310",
            name="Prepaid Insurance",
            account_type=Account.ASSET,
            subtype="prepaid",
        )

        with self.assertRaises(AccountResolutionError):
            registry.find_by_subtype("prepaid")

        codes = list(registry.accounts_for_subtype("prepaid").values_list("code", flat=True))
        self.assertEqual(codes, ["1300", "1310"])

    def test_second_primary_for_subtype_is_rejected(self):
        with self.assertRaises(ValidationError):
            Account.objects.create(
                code="1001",
                name="Second Till",
                account_type=Account.ASSET,
                subtype=registry.CASH,
                is_primary=True,
            )


class AccountModelTests(TestCase):
    def test_subtype_must_match_account_type(self):
        with self.assertRaises(ValidationError):
            Account.objects.create(
                code="1900",
                name="Misfiled",
                account_type=Account.ASSET,
                subtype=registry.SALES,
            )

    def test_code_and_name_are_trimmed(self):
        acc = Account.objects.create(
            code="  1950 ",
            name=" Petty Cash  ",
            account_type=Account.ASSET,
            subtype="other_asset",
        )
        self.assertEqual(acc.code, "1950")
        self.assertEqual(acc.name, "Petty Cash")

    def test_system_account_cannot_be_deleted(self):
        accounts = seeded_chart()
        with self.assertRaises(ValidationError):
            accounts["1000"].delete()
        self.assertTrue(Account.objects.filter(code="1000").exists())

    def test_signed_follows_normal_side(self):
        accounts = seeded_chart()
        self.assertEqual(accounts["1000"].signed(debit=100, credit=30), 70)
        self.assertEqual(accounts["4000"].signed(debit=100, credit=30), -70)
