from decimal import Decimal

import pytest

from ..core.errors import (
    ErrorKind,
    InvalidAccountIdError,
    InvalidAmountError,
    MissingFieldError,
    NegativeBalanceError,
    NonPositiveAmountError,
    SameAccountTransferError,
)
from ..models import AccountCreate, TransferRequest
from ..services import validate_account_id, validate_create_account, validate_transfer


def test_create_account_trims_and_parses() -> None:
    new_account = validate_create_account(
        AccountCreate(account_id="  acc-1 ", initial_balance=" 100.00 ")
    )
    assert new_account.account_id == "acc-1"
    assert new_account.initial_balance == Decimal("100.00")


def test_create_account_allows_zero_balance() -> None:
    new_account = validate_create_account(AccountCreate(account_id="acc-1", initial_balance="0"))
    assert new_account.initial_balance == Decimal("0")


@pytest.mark.parametrize(
    "payload, error, message",
    [
        (AccountCreate(initial_balance="100"), MissingFieldError, "account_id is required"),
        (AccountCreate(account_id="   ", initial_balance="100"), MissingFieldError, "account_id is required"),
        (AccountCreate(account_id="acc-1"), MissingFieldError, "initial_balance is required"),
        (AccountCreate(account_id="acc-1", initial_balance="xyz"), InvalidAmountError, "initial_balance must be a valid decimal number"),
        (AccountCreate(account_id="acc-1", initial_balance="-0.01"), NegativeBalanceError, "initial_balance must be non-negative"),
    ],
)
def test_create_account_rejections(payload: AccountCreate, error: type, message: str) -> None:
    with pytest.raises(error) as exc_info:
        validate_create_account(payload)
    assert exc_info.value.message == message


def test_transfer_trims_and_parses() -> None:
    command = validate_transfer(
        TransferRequest(
            source_account_id=" acc-1",
            destination_account_id="acc-2 ",
            amount=" 50.00",
        )
    )
    assert command.source_account_id == "acc-1"
    assert command.destination_account_id == "acc-2"
    assert command.amount == Decimal("50.00")


@pytest.mark.parametrize(
    "payload, kind",
    [
        (TransferRequest(destination_account_id="acc-2", amount="10"), ErrorKind.MISSING_FIELD),
        (TransferRequest(source_account_id="acc-1", amount="10"), ErrorKind.MISSING_FIELD),
        (TransferRequest(source_account_id="acc-1", destination_account_id="acc-2"), ErrorKind.MISSING_FIELD),
        (TransferRequest(source_account_id="acc-1", destination_account_id="acc-2", amount="xyz"), ErrorKind.INVALID_AMOUNT),
        (TransferRequest(source_account_id="acc-1", destination_account_id="acc-2", amount="0"), ErrorKind.NON_POSITIVE_AMOUNT),
        (TransferRequest(source_account_id="acc-1", destination_account_id="acc-2", amount="-5"), ErrorKind.NON_POSITIVE_AMOUNT),
        (TransferRequest(source_account_id="acc-1", destination_account_id=" acc-1 ", amount="5"), ErrorKind.SAME_ACCOUNT),
    ],
)
def test_transfer_rejections(payload: TransferRequest, kind: ErrorKind) -> None:
    with pytest.raises((MissingFieldError, InvalidAmountError, NonPositiveAmountError, SameAccountTransferError)) as exc_info:
        validate_transfer(payload)
    assert exc_info.value.kind is kind


def test_account_id_path_parameter() -> None:
    assert validate_account_id(" acc-1 ") == "acc-1"
    with pytest.raises(MissingFieldError):
        validate_account_id("  ")


def test_account_id_longer_than_the_column_is_rejected() -> None:
    assert validate_account_id("a" * 255) == "a" * 255

    with pytest.raises(InvalidAccountIdError) as exc_info:
        validate_account_id("a" * 256)
    assert exc_info.value.kind is ErrorKind.INVALID_ACCOUNT_ID
    assert exc_info.value.message == "account_id must be at most 255 characters"


def test_long_ids_are_rejected_on_create_and_transfer() -> None:
    long_id = "a" * 256

    with pytest.raises(InvalidAccountIdError):
        validate_create_account(AccountCreate(account_id=long_id, initial_balance="1"))

    with pytest.raises(InvalidAccountIdError) as exc_info:
        validate_transfer(
            TransferRequest(source_account_id="acc-1", destination_account_id=long_id, amount="1")
        )
    assert exc_info.value.message == "destination_account_id must be at most 255 characters"
