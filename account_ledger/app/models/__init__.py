from .db import Account as AccountModel
from .db import AccountStatus, AccountType, Currency, EntryType
from .db import LedgerEntry as LedgerEntryModel
from .schemas import (
    AccountBalance,
    AccountCreate,
    AccountResponse,
    AccountUpdate,
    LedgerEntryResponse,
    PostingResponse,
    TransactionCreate,
    TransactionListResponse,
)

__all__ = [
    "AccountBalance",
    "AccountCreate",
    "AccountResponse",
    "AccountUpdate",
    "LedgerEntryResponse",
    "PostingResponse",
    "TransactionCreate",
    "TransactionListResponse",
    "AccountModel",
    "LedgerEntryModel",
    "AccountStatus",
    "AccountType",
    "Currency",
    "EntryType",
]
