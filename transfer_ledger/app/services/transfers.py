"""Atomic transfer of funds between two accounts.

A transfer locks both account rows in a fixed global order (sorted by
account id, whichever side is the source), reads balances only under
those locks, then writes the debit, the credit and the audit row in the
same database transaction. Lock ordering rules out deadlocks between
opposing transfers; locking before reading rules out lost updates.

Conflicts the datastore reports as retryable (lock timeout, deadlock,
serialization failure) rerun the whole transaction with the same inputs,
up to ``max_attempts`` times. Nothing outside the transaction happens
before commit, so a rerun cannot double-apply.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, DecimalException
from enum import Enum
from typing import Optional, Union
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..core.amount import (
    add_amounts,
    exceeds_integer_digits,
    format_amount,
    is_positive,
    subtract_amounts,
)
from ..core.db import is_lock_timeout, is_retryable, run_in_transaction
from ..core.errors import (
    BalanceLimitExceededError,
    DestinationNotFoundError,
    InsufficientFundsError,
    LedgerError,
    LockTimeoutError,
    NonPositiveAmountError,
    ProcessingFailedError,
    SameAccountTransferError,
    SourceNotFoundError,
)
from .repository import LedgerRepository

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


class TransferState(str, Enum):
    STARTED = "started"
    LOCKS_ACQUIRED = "locks_acquired"
    BALANCES_VALIDATED = "balances_validated"
    APPLIED = "applied"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class TransferReceipt:
    transaction_id: UUID
    source_account_id: str
    destination_account_id: str
    amount: Decimal
    created_at: datetime
    attempts: int


class TransferEngine:
    def __init__(
        self,
        session: Session,
        repository: Optional[LedgerRepository] = None,
        *,
        lock_timeout_ms: int = 5000,
        max_attempts: int = 3,
        retry_backoff_ms: int = 50,
        logger: Optional[LoggerLike] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session
        self.repository = repository or LedgerRepository(session)
        self.lock_timeout_ms = lock_timeout_ms
        self.max_attempts = max(1, max_attempts)
        self.retry_backoff_ms = retry_backoff_ms
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self._sleep = sleep
        self.state: Optional[TransferState] = None

    def transfer(self, source_id: str, destination_id: str, amount: Decimal) -> TransferReceipt:
        if source_id == destination_id:
            raise SameAccountTransferError("Cannot transfer to the same account")
        if not is_positive(amount):
            raise NonPositiveAmountError("amount must be positive")

        context = {
            "source_account_id": source_id,
            "destination_account_id": destination_id,
            "amount": format_amount(amount),
        }

        attempt = 1
        while True:
            try:
                return self._attempt(source_id, destination_id, amount, attempt)
            except LedgerError as exc:
                self.logger.info(
                    "transfer.rejected",
                    extra={**context, "attempt": attempt, "error_code": exc.kind.value},
                )
                raise
            except SQLAlchemyError as exc:
                if is_retryable(exc) and attempt < self.max_attempts:
                    self.logger.warning(
                        "transfer.retry",
                        extra={**context, "attempt": attempt, "lock_timeout": is_lock_timeout(exc)},
                    )
                    self._sleep(self.retry_backoff_ms * attempt / 1000)
                    attempt += 1
                    continue
                if is_lock_timeout(exc):
                    self.logger.error(
                        "transfer.timeout", extra={**context, "attempt": attempt}
                    )
                    raise LockTimeoutError() from exc
                self.logger.error(
                    "transfer.failed",
                    extra={**context, "attempt": attempt},
                    exc_info=exc,
                )
                raise ProcessingFailedError() from exc
            except DecimalException as exc:
                self.logger.error(
                    "transfer.arithmetic_failed",
                    extra={**context, "attempt": attempt},
                    exc_info=exc,
                )
                raise ProcessingFailedError() from exc

    def _attempt(
        self,
        source_id: str,
        destination_id: str,
        amount: Decimal,
        attempt: int,
    ) -> TransferReceipt:
        self._advance(TransferState.STARTED, attempt)

        def work() -> TransferReceipt:
            self.repository.set_lock_timeout(self.lock_timeout_ms)

            locked = {}
            for account_id in sorted((source_id, destination_id)):
                locked[account_id] = self.repository.lock_account(account_id)
            self._advance(TransferState.LOCKS_ACQUIRED, attempt)

            destination = locked[destination_id]
            if destination is None:
                raise DestinationNotFoundError()
            source = locked[source_id]
            if source is None:
                raise SourceNotFoundError()
            if source.balance < amount:
                raise InsufficientFundsError()
            new_source_balance = subtract_amounts(source.balance, amount)
            new_destination_balance = add_amounts(destination.balance, amount)
            if exceeds_integer_digits(new_destination_balance):
                raise BalanceLimitExceededError()
            self._advance(TransferState.BALANCES_VALIDATED, attempt)

            self.repository.set_balance(source, new_source_balance)
            self.repository.set_balance(destination, new_destination_balance)
            record = self.repository.add_transaction(
                source_account_id=source_id,
                destination_account_id=destination_id,
                amount=amount,
            )
            self._advance(TransferState.APPLIED, attempt)

            return TransferReceipt(
                transaction_id=record.id,
                source_account_id=source_id,
                destination_account_id=destination_id,
                amount=amount,
                created_at=record.created_at,
                attempts=attempt,
            )

        try:
            receipt = run_in_transaction(self.session, work)
        except BaseException:
            self._advance(TransferState.ROLLED_BACK, attempt)
            raise
        self._advance(TransferState.COMMITTED, attempt)
        return receipt

    def _advance(self, state: TransferState, attempt: int) -> None:
        self.state = state
        self.logger.debug("transfer.state", extra={"state": state.value, "attempt": attempt})
