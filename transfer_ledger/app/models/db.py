from __future__ import annotations
from datetime import datetime, UTC
from decimal import Decimal
from uuid import UUID, uuid4
from sqlalchemy import CheckConstraint, Column
from sqlmodel import Field, SQLModel

from .types import ExactDecimal

MAX_ACCOUNT_ID_LENGTH = 255


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Account(SQLModel, table=True):
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint(
            "CAST(balance AS NUMERIC) >= 0", name="ck_accounts_balance_non_negative"
        ),
    )

    id: str = Field(primary_key=True, max_length=MAX_ACCOUNT_ID_LENGTH)
    balance: Decimal = Field(sa_column=Column(ExactDecimal(), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class TransactionRecord(SQLModel, table=True):
    """Audit row written in the same database transaction as a transfer."""

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint(
            "CAST(amount AS NUMERIC) > 0", name="ck_transactions_amount_positive"
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    source_account_id: str = Field(foreign_key="accounts.id", index=True)
    destination_account_id: str = Field(foreign_key="accounts.id", index=True)
    amount: Decimal = Field(sa_column=Column(ExactDecimal(), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, index=True)
