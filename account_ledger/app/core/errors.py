class LedgerError(Exception):
    """Base class for errors raised by the account and ledger services."""


class AccountNotFoundError(LedgerError):
    """Raised when an account number is missing from the store."""


class OwnershipViolationError(LedgerError):
    """Raised when the caller does not own the account it addressed."""


class InsufficientFundsError(LedgerError):
    """Raised when a debit would drop the balance below zero."""


class AccountDeactivatedError(LedgerError):
    """Raised when a deactivated account is asked to change."""


class DuplicateAccountNameError(LedgerError):
    """Raised when an account name is already taken."""


class DuplicateIdentifierError(LedgerError):
    """Raised when no unused account number was found within the retry budget."""


class StorageFailureError(LedgerError):
    """Raised when an atomic write could not commit. Nothing was persisted;
    the operation is safe to retry."""
