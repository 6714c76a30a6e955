from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from ..core.errors import (
    AccountDeactivatedError,
    AccountNotFoundError,
    DuplicateAccountNameError,
    DuplicateIdentifierError,
    OwnershipViolationError,
    StorageFailureError,
)
from ..core.identifiers import AccountNumberGenerator
from ..models import (
    AccountCreate,
    AccountModel,
    AccountStatus,
    AccountUpdate,
    EntryType,
)
from .repository import LedgerRepository


logger = logging.getLogger(__name__)

OPENING_BALANCE_MEMO = "Opening balance"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AccountService:
    def __init__(
        self,
        session: Session,
        repository: Optional[LedgerRepository] = None,
        *,
        generator: Optional[AccountNumberGenerator] = None,
        max_attempts: int = 5,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.session = session
        self.repository = repository or LedgerRepository(session)
        self.generator = generator or AccountNumberGenerator()
        self.max_attempts = max_attempts
        self.clock = clock

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    def _insert_account(
        self, owner_id: str, payload: AccountCreate, account_number: str
    ) -> AccountModel:
        now = self.clock()
        opening = (payload.balance or Decimal("0")).quantize(Decimal("0.01"))
        account = self.repository.add_account(
            AccountModel(
                account_number=account_number,
                owner_id=owner_id,
                account_name=payload.account_name,
                account_type=payload.account_type,
                currency=payload.currency,
                balance=opening,
                created_at=now,
                updated_at=now,
            )
        )
        # The opening balance is booked so the ledger sums to the balance.
        if opening > 0:
            self.repository.add_entry(
                account_id=account.id,
                amount=opening,
                entry_type=EntryType.CREDIT,
                memo=OPENING_BALANCE_MEMO,
                created_at=now,
            )
        self.session.commit()
        self.session.refresh(account)
        return account

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageFailureError("Account change could not be committed") from exc

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def create_account(self, owner_id: str, payload: AccountCreate) -> AccountModel:
        """Create an account under a freshly drawn, unused account number.

        Numbers are drawn at most ``max_attempts`` times; a number that is
        already taken, or that loses an insert race, costs one attempt.
        """
        if self.repository.account_name_exists(payload.account_name):
            raise DuplicateAccountNameError(
                f"Account name '{payload.account_name}' is already taken"
            )

        for attempt in range(1, self.max_attempts + 1):
            account_number = self.generator.generate()
            if self.repository.account_number_exists(account_number):
                logger.warning(
                    "account.number.collision",
                    extra={"account_number": account_number, "attempt": attempt},
                )
                continue

            try:
                account = self._insert_account(owner_id, payload, account_number)
            except IntegrityError as exc:
                self.session.rollback()
                if self.repository.account_name_exists(payload.account_name):
                    raise DuplicateAccountNameError(
                        f"Account name '{payload.account_name}' is already taken"
                    ) from exc
                logger.warning(
                    "account.number.collision",
                    extra={"account_number": account_number, "attempt": attempt},
                )
                continue
            except SQLAlchemyError as exc:
                self.session.rollback()
                raise StorageFailureError("Account could not be created") from exc

            logger.info(
                "account.created",
                extra={
                    "account_id": str(account.id),
                    "account_number": account.account_number,
                    "owner_id": owner_id,
                },
            )
            return account

        raise DuplicateIdentifierError(
            f"No unused account number found after {self.max_attempts} attempts"
        )

    def get_account(
        self, account_number: str, *, include_inactive: bool = False
    ) -> AccountModel:
        account = self.repository.get_account_by_number(account_number)
        if account is None or (not include_inactive and not account.is_active):
            raise AccountNotFoundError(f"Account {account_number} not found")
        return account

    def get_owned_account(
        self,
        account_number: str,
        owner_id: str,
        *,
        include_inactive: bool = False,
    ) -> AccountModel:
        account = self.get_account(account_number, include_inactive=include_inactive)
        if account.owner_id != owner_id:
            raise OwnershipViolationError("Access to this account is not allowed")
        return account

    def update_account(
        self, account_number: str, owner_id: str, payload: AccountUpdate
    ) -> AccountModel:
        account = self.get_owned_account(account_number, owner_id)
        if self.repository.account_name_exists(payload.account_name, exclude_id=account.id):
            raise DuplicateAccountNameError(
                f"Account name '{payload.account_name}' is already taken"
            )

        account.account_name = payload.account_name
        account.account_type = payload.account_type
        account.currency = payload.currency
        account.updated_at = self.clock()
        self.session.add(account)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateAccountNameError(
                f"Account name '{payload.account_name}' is already taken"
            ) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageFailureError("Account could not be updated") from exc
        self.session.refresh(account)

        logger.info(
            "account.updated",
            extra={"account_number": account_number, "owner_id": owner_id},
        )
        return account

    def deactivate_account(self, account_number: str, owner_id: str) -> AccountModel:
        """Soft-delete: the row and its ledger history are kept."""
        account = self.get_owned_account(account_number, owner_id, include_inactive=True)
        if not account.is_active:
            raise AccountDeactivatedError(f"Account {account_number} is already deactivated")

        now = self.clock()
        account.status = AccountStatus.DEACTIVATED
        # Postings that read the row before this commit fail their version check.
        account.version += 1
        account.deactivated_at = now
        account.updated_at = now
        self.session.add(account)
        self._commit()
        self.session.refresh(account)

        logger.info(
            "account.deactivated",
            extra={"account_number": account_number, "owner_id": owner_id},
        )
        return account
