from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.identifiers import AccountNumberGenerator
from .db import AccountStatus, AccountType, Currency, EntryType


class AccountCreate(BaseModel):
    account_name: str = Field(..., min_length=1, max_length=255)
    account_type: AccountType
    currency: Currency
    balance: Optional[Decimal] = Field(
        default=None,
        ge=0,
        max_digits=15,
        decimal_places=2,
        description="Opening balance; defaults to zero",
    )


class AccountUpdate(BaseModel):
    account_name: str = Field(..., min_length=1, max_length=255)
    account_type: AccountType
    currency: Currency


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    account_number: str
    account_name: str
    account_type: AccountType
    currency: Currency
    balance: Decimal
    status: AccountStatus
    created_at: datetime
    updated_at: datetime


class TransactionCreate(BaseModel):
    account_number: str
    type: EntryType
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    description: Optional[str] = Field(default=None, max_length=255)

    @field_validator("account_number")
    @classmethod
    def _check_account_number(cls, value: str) -> str:
        if not AccountNumberGenerator.is_valid(value):
            raise ValueError("Malformed account number")
        return value


class LedgerEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: UUID
    type: EntryType
    amount: Decimal
    description: Optional[str] = Field(default=None, description="Memo shown on the statement")
    created_at: datetime


class AccountBalance(BaseModel):
    id: UUID
    account_number: str
    balance: Decimal


class PostingResponse(BaseModel):
    transaction: LedgerEntryResponse
    account: AccountBalance


class TransactionListResponse(BaseModel):
    items: list[LedgerEntryResponse]
    page: Optional[int] = None
    per_page: Optional[int] = None
    total: Optional[int] = None
    last_page: Optional[int] = None
