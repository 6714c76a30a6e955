from fastapi import Depends
from sqlmodel import Session

from ..services import AccountService, LedgerRepository, LedgerService
from .config import Settings, get_settings
from .db import get_session
from .locks import account_locks


def get_repository(session: Session = Depends(get_session)) -> LedgerRepository:
    return LedgerRepository(session)


def get_account_service(
    session: Session = Depends(get_session),
    repository: LedgerRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(
        session, repository, max_attempts=settings.account_number_attempts
    )


def get_ledger_service(
    session: Session = Depends(get_session),
    repository: LedgerRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> LedgerService:
    return LedgerService(
        session,
        repository,
        locks=account_locks,
        max_attempts=settings.posting_attempts,
    )
