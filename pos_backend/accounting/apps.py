# accounting/apps.py

"""
ACCOUNTING APP CONFIG

Double-entry accounting engine:
- Chart of accounts (type/subtype taxonomy)
- Fiscal years + closing
- Journal entries (posted by business events, manual drafts, reversals)
- Recurring journal templates
"""

from django.apps import AppConfig


class AccountingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "accounting"
    verbose_name = "Accounting"
