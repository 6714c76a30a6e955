from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlmodel import Session, col, select

from ..models import AccountModel, AccountStatus, EntryType, LedgerEntryModel


class LedgerRepository:
    """Thin data access layer around the SQLModel session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # Account operations -------------------------------------------------
    def add_account(self, account: AccountModel) -> AccountModel:
        self.session.add(account)
        self.session.flush()
        self.session.refresh(account)
        return account

    def get_account(self, account_id: UUID) -> Optional[AccountModel]:
        return self.session.get(AccountModel, account_id)

    def get_account_by_number(self, account_number: str) -> Optional[AccountModel]:
        stmt = select(AccountModel).where(AccountModel.account_number == account_number)
        return self.session.exec(stmt).first()

    def lock_account(self, account_id: UUID) -> Optional[AccountModel]:
        """Re-read the account row, bypassing the identity map, and take a
        row lock on backends that support ``FOR UPDATE``."""
        stmt = (
            select(AccountModel)
            .where(AccountModel.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.session.exec(stmt).first()

    def account_number_exists(self, account_number: str) -> bool:
        stmt = select(AccountModel.id).where(AccountModel.account_number == account_number)
        return self.session.exec(stmt).first() is not None

    def account_name_exists(
        self, account_name: str, exclude_id: Optional[UUID] = None
    ) -> bool:
        stmt = select(AccountModel.id).where(AccountModel.account_name == account_name)
        if exclude_id is not None:
            stmt = stmt.where(AccountModel.id != exclude_id)
        return self.session.exec(stmt).first() is not None

    def set_balance(
        self,
        account_id: UUID,
        *,
        expected_version: int,
        balance: Decimal,
        updated_at: datetime,
    ) -> bool:
        """Write a new balance only if nobody changed the row since it was
        read at ``expected_version`` and the account is still active.
        Returns False otherwise."""
        stmt = (
            update(AccountModel)
            .where(col(AccountModel.id) == account_id)
            .where(col(AccountModel.version) == expected_version)
            .where(col(AccountModel.status) == AccountStatus.ACTIVE)
            .values(
                balance=balance,
                version=expected_version + 1,
                updated_at=updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)
        return result.rowcount == 1

    # Ledger entries -----------------------------------------------------
    def add_entry(
        self,
        *,
        account_id: UUID,
        amount: Decimal,
        entry_type: EntryType,
        memo: Optional[str],
        created_at: datetime,
    ) -> LedgerEntryModel:
        entry = LedgerEntryModel(
            account_id=account_id,
            amount=amount,
            type=entry_type,
            description=memo,
            created_at=created_at,
        )
        self.session.add(entry)
        self.session.flush()
        self.session.refresh(entry)
        return entry

    def _filtered_entries(
        self,
        stmt,
        account_id: UUID,
        from_date: Optional[date],
        to_date: Optional[date],
    ):
        stmt = stmt.where(LedgerEntryModel.account_id == account_id)
        # Whole calendar days: [from_date 00:00, to_date + 1 day 00:00)
        if from_date is not None:
            stmt = stmt.where(
                col(LedgerEntryModel.created_at)
                >= datetime.combine(from_date, time.min, tzinfo=UTC)
            )
        if to_date is not None:
            stmt = stmt.where(
                col(LedgerEntryModel.created_at)
                < datetime.combine(to_date + timedelta(days=1), time.min, tzinfo=UTC)
            )
        return stmt

    def list_entries(
        self,
        account_id: UUID,
        *,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[LedgerEntryModel]:
        stmt = self._filtered_entries(
            select(LedgerEntryModel), account_id, from_date, to_date
        ).order_by(
            col(LedgerEntryModel.created_at).desc(),
            col(LedgerEntryModel.id).desc(),
        )
        if limit is not None:
            stmt = stmt.offset(offset).limit(limit)
        return list(self.session.exec(stmt))

    def count_entries(
        self,
        account_id: UUID,
        *,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> int:
        stmt = self._filtered_entries(
            select(func.count()).select_from(LedgerEntryModel),
            account_id,
            from_date,
            to_date,
        )
        return self.session.exec(stmt).one()
