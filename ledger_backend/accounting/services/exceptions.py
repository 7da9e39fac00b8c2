# accounting/services/exceptions.py

"""
ACCOUNTING SERVICE ERRORS

Centralized domain errors for accounting services.

Every error carries a stable `code` so the (external) request layer can map
failures without string matching:
- VALIDATION        malformed / missing / non-positive input
- IMBALANCED_ENTRY  Σdebit != Σcredit
- UNKNOWN_ACCOUNT   code not in the tenant's chart (or inactive)
- NO_JOURNAL_ENTRY  reversal target not found
- IDEMPOTENCY       business record already posted / posting in flight

All of VALIDATION / IMBALANCED_ENTRY / UNKNOWN_ACCOUNT are raised BEFORE
anything is persisted.
"""


class AccountingServiceError(Exception):
    """Base exception for all accounting service failures."""

    code = "ACCOUNTING_ERROR"


class AccountResolutionError(AccountingServiceError):
    """Raised when an expected account cannot be resolved."""

    code = "UNKNOWN_ACCOUNT"


class UnknownAccountError(AccountResolutionError):
    """Raised when one or more account references are not in the tenant's chart."""

    def __init__(self, message: str, *, missing=()):
        super().__init__(message)
        self.missing = tuple(missing)


class JournalEntryCreationError(AccountingServiceError):
    """Raised when a journal entry cannot be created."""


class PostingValidationError(JournalEntryCreationError):
    code = "VALIDATION"


class ImbalancedEntryError(JournalEntryCreationError):
    code = "IMBALANCED_ENTRY"

    def __init__(self, message: str, *, total_debit=None, total_credit=None):
        super().__init__(message)
        self.total_debit = total_debit
        self.total_credit = total_credit


class NoJournalEntryError(AccountingServiceError):
    """Raised when the entry to reverse (or read) cannot be located."""

    code = "NO_JOURNAL_ENTRY"


class BalanceServiceError(AccountingServiceError):
    """Base error for balance and reporting services."""

    code = "VALIDATION"


class IdempotencyError(AccountingServiceError):
    """Raised on duplicate or retried accounting events."""

    code = "IDEMPOTENCY"
