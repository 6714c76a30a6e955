from .accounts import AccountService
from .ledger import LedgerService, PostingResult, TransactionPage
from .repository import LedgerRepository

__all__ = [
    "AccountService",
    "LedgerRepository",
    "LedgerService",
    "PostingResult",
    "TransactionPage",
]
