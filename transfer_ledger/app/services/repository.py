from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import insert
from sqlmodel import Session, select

from ..core.db import READ_ONLY
from ..models import AccountModel, TransactionRecordModel


class LedgerRepository:
    """Thin data access layer around the SQLModel session.

    Nothing here commits; transaction boundaries belong to the caller.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # Account operations -------------------------------------------------
    def add_account(self, account_id: str, balance: Decimal) -> AccountModel:
        # Plain INSERT so a duplicate id is always reported by the
        # database's primary key (IntegrityError), whatever the session
        # already holds in its identity map.
        now = datetime.now(UTC)
        self.session.connection().execute(
            insert(AccountModel.__table__).values(
                id=account_id, balance=balance, created_at=now, updated_at=now
            )
        )
        return AccountModel(id=account_id, balance=balance, created_at=now, updated_at=now)

    def get_account(self, account_id: str) -> Optional[AccountModel]:
        """Point-in-time read; must be the first statement of its transaction."""
        self.session.connection(execution_options=READ_ONLY)
        return self.session.get(AccountModel, account_id, populate_existing=True)

    def lock_account(self, account_id: str) -> Optional[AccountModel]:
        """Read an account row holding an exclusive row lock until commit."""
        stmt = (
            select(AccountModel)
            .where(AccountModel.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.session.exec(stmt).first()

    def set_balance(self, account: AccountModel, balance: Decimal) -> None:
        account.balance = balance
        account.updated_at = datetime.now(UTC)
        self.session.add(account)

    # Transfer audit -----------------------------------------------------
    def add_transaction(
        self,
        *,
        source_account_id: str,
        destination_account_id: str,
        amount: Decimal,
    ) -> TransactionRecordModel:
        record = TransactionRecordModel(
            source_account_id=source_account_id,
            destination_account_id=destination_account_id,
            amount=amount,
        )
        self.session.add(record)
        self.session.flush()
        return record

    # Locking ------------------------------------------------------------
    def set_lock_timeout(self, timeout_ms: int) -> None:
        """Bound lock waits for the current transaction.

        Only PostgreSQL needs this; SQLite waits up to the busy timeout
        configured on the engine.
        """
        if self.session.get_bind().dialect.name != "postgresql":
            return
        # SET does not accept bind parameters; the value is an int.
        self.session.connection().exec_driver_sql(
            f"SET LOCAL lock_timeout = '{int(timeout_ms)}ms'"
        )
