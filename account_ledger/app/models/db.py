from __future__ import annotations
from datetime import datetime, UTC
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AccountType(str, Enum):
    PERSONAL = "Personal"
    BUSINESS = "Business"


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    INR = "INR"


class AccountStatus(str, Enum):
    ACTIVE = "Active"
    DEACTIVATED = "Deactivated"


class EntryType(str, Enum):
    CREDIT = "Credit"
    DEBIT = "Debit"


class Account(SQLModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    account_number: str = Field(max_length=13, unique=True, index=True)
    owner_id: str = Field(index=True)
    account_name: str = Field(max_length=255, unique=True, index=True)
    account_type: AccountType
    currency: Currency
    balance: Decimal = Field(default=Decimal("0.00"), max_digits=15, decimal_places=2)
    status: AccountStatus = Field(default=AccountStatus.ACTIVE)
    # Bumped with every balance change; guards the conditional write.
    version: int = Field(default=0)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    deactivated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE


class LedgerEntry(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: UUID = Field(foreign_key="account.id", index=True)
    type: EntryType
    amount: Decimal = Field(max_digits=15, decimal_places=2)
    description: Optional[str] = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=_utcnow, index=True)
