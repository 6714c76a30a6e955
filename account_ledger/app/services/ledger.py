from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..core.errors import (
    AccountDeactivatedError,
    AccountNotFoundError,
    InsufficientFundsError,
    StorageFailureError,
)
from ..core.locks import AccountLockRegistry, account_locks
from ..models import AccountModel, EntryType, LedgerEntryModel
from .repository import LedgerRepository


logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# Largest value the Numeric(15, 2) balance column holds exactly.
MAX_BALANCE = Decimal("9999999999999.99")
MAX_PAGE_SIZE = 100


class _VersionConflict(Exception):
    """The account row changed between the read and the conditional write."""


@dataclass(frozen=True)
class PostingResult:
    entry: LedgerEntryModel
    balance: Decimal


@dataclass(frozen=True)
class TransactionPage:
    items: list[LedgerEntryModel]
    page: Optional[int] = None
    per_page: Optional[int] = None
    total: Optional[int] = None

    @property
    def last_page(self) -> Optional[int]:
        if self.per_page is None or self.total is None:
            return None
        return max(1, math.ceil(self.total / self.per_page))


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LedgerService:
    """Posts credits and debits against an account and reads its history.

    A posting writes one ledger entry and moves the account balance in the
    same database transaction, so the balance always equals the signed sum of
    the account's entries. Postings to one account are serialized by a
    per-account lock and, across processes, by a version-checked update of
    the account row.
    """

    def __init__(
        self,
        session: Session,
        repository: Optional[LedgerRepository] = None,
        *,
        locks: Optional[AccountLockRegistry] = None,
        max_attempts: int = 3,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.session = session
        self.repository = repository or LedgerRepository(session)
        self.locks = locks if locks is not None else account_locks
        self.max_attempts = max_attempts
        self.clock = clock

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    @staticmethod
    def _check_amount(amount: Decimal) -> Decimal:
        if not amount.is_finite() or amount <= 0:
            raise ValueError("Amount must be a positive number")
        if amount != amount.quantize(CENT):
            raise ValueError("Amount must have at most two decimal places")
        return amount.quantize(CENT)

    def _apply(
        self,
        account_id: UUID,
        account_number: str,
        direction: EntryType,
        amount: Decimal,
        memo: Optional[str],
    ) -> PostingResult:
        current = self.repository.lock_account(account_id)
        if current is None:
            raise AccountNotFoundError(f"Account {account_number} not found")
        if not current.is_active:
            raise AccountDeactivatedError(
                f"Account {current.account_number} is deactivated"
            )

        if direction == EntryType.DEBIT and amount > current.balance:
            raise InsufficientFundsError("Insufficient balance")

        delta = amount if direction == EntryType.CREDIT else -amount
        new_balance = (current.balance + delta).quantize(CENT)
        if new_balance > MAX_BALANCE:
            raise ValueError(f"Balance would exceed the maximum of {MAX_BALANCE}")
        now = self.clock()

        if not self.repository.set_balance(
            current.id,
            expected_version=current.version,
            balance=new_balance,
            updated_at=now,
        ):
            raise _VersionConflict()

        entry = self.repository.add_entry(
            account_id=current.id,
            amount=amount,
            entry_type=direction,
            memo=memo,
            created_at=now,
        )
        self.session.commit()
        return PostingResult(entry=entry, balance=new_balance)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def post_transaction(
        self,
        account: AccountModel,
        direction: EntryType,
        amount: Decimal,
        memo: Optional[str] = None,
    ) -> PostingResult:
        """Apply a credit or debit to ``account`` and record it.

        The caller has already resolved the account and checked ownership.
        Raises InsufficientFundsError for an overdraft and
        AccountDeactivatedError for a deactivated account; neither mutates
        anything. Raises StorageFailureError when the write could not commit;
        the transaction is rolled back in full and the call may be retried.
        """
        direction = EntryType(direction)
        amount = self._check_amount(amount)
        if not account.is_active:
            raise AccountDeactivatedError(
                f"Account {account.account_number} is deactivated"
            )

        account_id = account.id
        account_number = account.account_number

        with self.locks.hold(account_id):
            for attempt in range(1, self.max_attempts + 1):
                try:
                    result = self._apply(
                        account_id, account_number, direction, amount, memo
                    )
                except _VersionConflict:
                    self.session.rollback()
                    logger.warning(
                        "transaction.conflict",
                        extra={"account_number": account_number, "attempt": attempt},
                    )
                    continue
                except InsufficientFundsError:
                    self.session.rollback()
                    logger.info(
                        "transaction.rejected",
                        extra={
                            "account_number": account_number,
                            "type": direction.value,
                            "amount": str(amount),
                        },
                    )
                    raise
                except SQLAlchemyError as exc:
                    self.session.rollback()
                    logger.error(
                        "transaction.storage_failure",
                        extra={"account_number": account_number, "error": str(exc)},
                    )
                    raise StorageFailureError(
                        "Transaction could not be committed"
                    ) from exc
                except Exception:
                    self.session.rollback()
                    raise

                self.session.refresh(result.entry)
                logger.info(
                    "transaction.posted",
                    extra={
                        "account_number": account_number,
                        "transaction_id": result.entry.id,
                        "type": direction.value,
                        "amount": str(amount),
                        "balance": str(result.balance),
                    },
                )
                return result

        raise StorageFailureError(
            f"Account {account_number} kept changing during the posting; retry later"
        )

    def list_transactions(
        self,
        account: AccountModel,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        per_page: Optional[int] = None,
        page: int = 1,
    ) -> TransactionPage:
        """Return the account's entries, newest first.

        ``from_date`` and ``to_date`` are inclusive and compare calendar
        dates only. Without ``per_page`` the whole filtered history is
        returned in one page with no pagination metadata.
        """
        if per_page is None:
            items = self.repository.list_entries(
                account.id, from_date=from_date, to_date=to_date
            )
            return TransactionPage(items=items)

        if not 1 <= per_page <= MAX_PAGE_SIZE:
            raise ValueError(f"per_page must be between 1 and {MAX_PAGE_SIZE}")
        if page < 1:
            raise ValueError("page must be 1 or greater")

        total = self.repository.count_entries(
            account.id, from_date=from_date, to_date=to_date
        )
        items = self.repository.list_entries(
            account.id,
            from_date=from_date,
            to_date=to_date,
            limit=per_page,
            offset=(page - 1) * per_page,
        )
        return TransactionPage(items=items, page=page, per_page=per_page, total=total)
