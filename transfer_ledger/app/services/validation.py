"""Normalisation and validation of externally supplied fields.

Everything that reaches the ledger service has been trimmed, checked for
presence and parsed into an exact ``Decimal`` here.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..core.amount import is_negative, is_positive, parse_amount
from ..core.errors import (
    InvalidAccountIdError,
    MissingFieldError,
    NegativeBalanceError,
    NonPositiveAmountError,
    SameAccountTransferError,
)
from ..models import AccountCreate, TransferRequest
from ..models.db import MAX_ACCOUNT_ID_LENGTH


@dataclass(frozen=True)
class NewAccount:
    account_id: str
    initial_balance: Decimal


@dataclass(frozen=True)
class TransferCommand:
    source_account_id: str
    destination_account_id: str
    amount: Decimal


def _required(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise MissingFieldError(f"{field} is required")
    return value


def validate_account_id(raw: Optional[str], field: str = "account_id") -> str:
    account_id = _required(raw, field)
    if len(account_id) > MAX_ACCOUNT_ID_LENGTH:
        raise InvalidAccountIdError(
            f"{field} must be at most {MAX_ACCOUNT_ID_LENGTH} characters"
        )
    return account_id


def validate_create_account(payload: AccountCreate) -> NewAccount:
    account_id = validate_account_id(payload.account_id)
    raw_balance = _required(payload.initial_balance, "initial_balance")

    balance = parse_amount(raw_balance, field="initial_balance")
    if is_negative(balance):
        raise NegativeBalanceError("initial_balance must be non-negative")

    return NewAccount(account_id=account_id, initial_balance=balance)


def validate_transfer(payload: TransferRequest) -> TransferCommand:
    source_id = validate_account_id(payload.source_account_id, "source_account_id")
    destination_id = validate_account_id(
        payload.destination_account_id, "destination_account_id"
    )
    raw_amount = _required(payload.amount, "amount")

    amount = parse_amount(raw_amount, field="amount")
    if not is_positive(amount):
        raise NonPositiveAmountError("amount must be positive")

    if source_id == destination_id:
        raise SameAccountTransferError("Cannot transfer to the same account")

    return TransferCommand(
        source_account_id=source_id,
        destination_account_id=destination_id,
        amount=amount,
    )
