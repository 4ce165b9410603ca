# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS

- In-memory SQLite (fast, isolated)
- Accounting gate OFF by default: tests build AccountingService(enabled=...) explicitly
- Quiet logging
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

ACCOUNTING_POSTING_ENABLED = False
ACCOUNTING_REQUIRE_FISCAL_YEAR = False
ACCOUNTING_ENTRY_NUMBER_PREFIX = "JE"

LOGGING["loggers"]["accounting"]["level"] = "CRITICAL"
