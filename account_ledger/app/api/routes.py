from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..core.auth import get_current_user_id
from ..core.dependencies import get_account_service, get_ledger_service
from ..models import (
    AccountBalance,
    AccountCreate,
    AccountResponse,
    AccountUpdate,
    LedgerEntryResponse,
    PostingResponse,
    TransactionCreate,
    TransactionListResponse,
)
from ..services import AccountService, LedgerService
from ..services.ledger import MAX_PAGE_SIZE


router = APIRouter(prefix="/accounts", tags=["accounts"])

@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    payload: AccountCreate,
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    account = service.create_account(user_id, payload)
    return AccountResponse.model_validate(account)

@router.get("/{account_number}", response_model=AccountResponse)
def get_account(
    account_number: str,
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    account = service.get_owned_account(account_number, user_id)
    return AccountResponse.model_validate(account)

@router.put("/{account_number}", response_model=AccountResponse)
def update_account(
    account_number: str,
    payload: AccountUpdate,
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    account = service.update_account(account_number, user_id, payload)
    return AccountResponse.model_validate(account)

@router.delete("/{account_number}", response_model=dict)
def deactivate_account(
    account_number: str,
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service),
) -> dict:
    service.deactivate_account(account_number, user_id)
    return {"detail": "Account deactivated"}

transaction_router = APIRouter(prefix="/transactions", tags=["transactions"])

@transaction_router.post(
    "", response_model=PostingResponse, status_code=status.HTTP_201_CREATED
)
def post_transaction(
    payload: TransactionCreate,
    user_id: str = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_account_service),
    ledger: LedgerService = Depends(get_ledger_service),
) -> PostingResponse:
    account = accounts.get_owned_account(
        payload.account_number, user_id, include_inactive=True
    )
    result = ledger.post_transaction(
        account, payload.type, payload.amount, payload.description
    )
    return PostingResponse(
        transaction=LedgerEntryResponse.model_validate(result.entry),
        account=AccountBalance(
            id=account.id,
            account_number=account.account_number,
            balance=result.balance,
        ),
    )

@transaction_router.get("", response_model=TransactionListResponse)
def list_transactions(
    account_number: str,
    from_date: Optional[date] = Query(default=None, alias="from"),
    to_date: Optional[date] = Query(default=None, alias="to"),
    per_page: Optional[int] = Query(default=None, ge=1, le=MAX_PAGE_SIZE),
    page: int = Query(default=1, ge=1),
    user_id: str = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_account_service),
    ledger: LedgerService = Depends(get_ledger_service),
) -> TransactionListResponse:
    account = accounts.get_owned_account(account_number, user_id, include_inactive=True)
    result = ledger.list_transactions(
        account, from_date=from_date, to_date=to_date, per_page=per_page, page=page
    )
    return TransactionListResponse(
        items=[LedgerEntryResponse.model_validate(entry) for entry in result.items],
        page=result.page,
        per_page=result.per_page,
        total=result.total,
        last_page=result.last_page,
    )

__all__ = ["router", "transaction_router"]
