# accounting/services/exceptions.py

"""
ACCOUNTING SERVICE ERRORS

Centralized domain errors for accounting services.

Configuration absence (a required account is missing) is NOT an error:
builders return None for it. Everything here aborts the operation.
"""


class AccountingServiceError(Exception):
    """Base exception for all accounting service failures."""


class AccountResolutionError(AccountingServiceError):
    """Raised when a subtype lookup is ambiguous (several accounts, no primary)."""


class JournalEntryCreationError(AccountingServiceError):
    """Raised when a journal entry cannot be created."""


class UnbalancedJournalError(JournalEntryCreationError):
    """Raised when total debits differ from total credits before commit."""


class IdempotencyError(AccountingServiceError):
    """Raised on duplicate or retried accounting events."""


class FiscalYearError(AccountingServiceError):
    """Raised when a fiscal year cannot be created or closed."""


class FiscalYearClosedError(FiscalYearError):
    """Raised when posting into a closed fiscal year."""


class FiscalYearRequiredError(FiscalYearError):
    """Raised when strict mode is on and no fiscal year covers the entry date."""


class JournalStateError(AccountingServiceError):
    """Raised on an illegal journal status transition."""


class RecurringEntryError(AccountingServiceError):
    """Raised when a recurring template cannot produce an entry."""
