from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced by the ledger."""

    MISSING_FIELD = "missing_field"
    INVALID_ACCOUNT_ID = "invalid_account_id"
    INVALID_AMOUNT = "invalid_amount"
    NEGATIVE_BALANCE = "negative_balance"
    NON_POSITIVE_AMOUNT = "non_positive_amount"
    SAME_ACCOUNT = "same_account"
    ACCOUNT_EXISTS = "account_exists"
    ACCOUNT_NOT_FOUND = "account_not_found"
    SOURCE_NOT_FOUND = "source_not_found"
    DESTINATION_NOT_FOUND = "destination_not_found"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    BALANCE_LIMIT_EXCEEDED = "balance_limit_exceeded"
    STORE_UNAVAILABLE = "store_unavailable"
    PROCESSING_FAILED = "processing_failed"
    TIMEOUT = "timeout"


class LedgerError(Exception):
    """Base class for ledger failures.

    The underlying cause, when there is one, is chained with
    ``raise ... from exc`` and never folded into ``message``.
    """

    kind: ErrorKind = ErrorKind.PROCESSING_FAILED
    default_message = "ledger operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequestError(LedgerError):
    """Raised by the validation layer before anything touches the store."""


class MissingFieldError(InvalidRequestError):
    kind = ErrorKind.MISSING_FIELD
    default_message = "required field is missing"


class InvalidAccountIdError(InvalidRequestError):
    kind = ErrorKind.INVALID_ACCOUNT_ID
    default_message = "account_id is too long"


class InvalidAmountError(InvalidRequestError):
    kind = ErrorKind.INVALID_AMOUNT
    default_message = "amount must be a valid decimal number"


class NegativeBalanceError(InvalidRequestError):
    kind = ErrorKind.NEGATIVE_BALANCE
    default_message = "initial_balance must be non-negative"


class NonPositiveAmountError(InvalidRequestError):
    kind = ErrorKind.NON_POSITIVE_AMOUNT
    default_message = "amount must be positive"


class SameAccountTransferError(InvalidRequestError):
    kind = ErrorKind.SAME_ACCOUNT
    default_message = "source and destination accounts must differ"


class AccountExistsError(LedgerError):
    kind = ErrorKind.ACCOUNT_EXISTS
    default_message = "account already exists"


class AccountNotFoundError(LedgerError):
    """Raised when an account id is missing from the store."""

    kind = ErrorKind.ACCOUNT_NOT_FOUND
    default_message = "account doesn't exist"


class SourceNotFoundError(AccountNotFoundError):
    kind = ErrorKind.SOURCE_NOT_FOUND
    default_message = "source account not found"


class DestinationNotFoundError(AccountNotFoundError):
    kind = ErrorKind.DESTINATION_NOT_FOUND
    default_message = "destination account not found"


class InsufficientFundsError(LedgerError):
    """Raised when a transfer would drop the source balance below zero."""

    kind = ErrorKind.INSUFFICIENT_FUNDS
    default_message = "insufficient funds in source account"


class BalanceLimitExceededError(LedgerError):
    """Raised when a credit would push the destination balance past the storable maximum."""

    kind = ErrorKind.BALANCE_LIMIT_EXCEEDED
    default_message = "destination balance would exceed the maximum supported balance"


class StoreUnavailableError(LedgerError):
    kind = ErrorKind.STORE_UNAVAILABLE
    default_message = "internal server error: account store unavailable"


class ProcessingFailedError(LedgerError):
    kind = ErrorKind.PROCESSING_FAILED
    default_message = "internal server error: failed to process transaction"


class LockTimeoutError(ProcessingFailedError):
    kind = ErrorKind.TIMEOUT
    default_message = "transaction timed out waiting for account locks"


__all__ = [
    "AccountExistsError",
    "AccountNotFoundError",
    "BalanceLimitExceededError",
    "DestinationNotFoundError",
    "ErrorKind",
    "InsufficientFundsError",
    "InvalidAccountIdError",
    "InvalidAmountError",
    "InvalidRequestError",
    "LedgerError",
    "LockTimeoutError",
    "MissingFieldError",
    "NegativeBalanceError",
    "NonPositiveAmountError",
    "ProcessingFailedError",
    "SameAccountTransferError",
    "SourceNotFoundError",
    "StoreUnavailableError",
]
