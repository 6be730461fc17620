from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..core.amount import format_amount
from ..core.config import Settings, get_settings
from ..core.db import is_unique_violation, run_in_transaction
from ..core.errors import (
    AccountExistsError,
    AccountNotFoundError,
    StoreUnavailableError,
)
from ..models import AccountModel, AccountResponse, TransferResponse
from .repository import LedgerRepository
from .transfers import LoggerLike, TransferEngine


class LedgerService:
    """Account store and transfer entry points used by the HTTP layer.

    Inputs are expected to have passed the validation layer already; the
    service does not re-check signs or formats.
    """

    def __init__(
        self,
        session: Session,
        repository: Optional[LedgerRepository] = None,
        *,
        logger: Optional[LoggerLike] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.session = session
        self.repository = repository or LedgerRepository(session)
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.settings = settings or get_settings()
        self.transfers = TransferEngine(
            session,
            self.repository,
            lock_timeout_ms=self.settings.lock_timeout_ms,
            max_attempts=self.settings.transfer_max_attempts,
            retry_backoff_ms=self.settings.transfer_retry_backoff_ms,
            logger=self.logger,
        )

    def _account_to_response(self, account: AccountModel) -> AccountResponse:
        return AccountResponse(account_id=account.id, balance=account.balance)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def create_account(self, account_id: str, initial_balance: Decimal) -> AccountResponse:
        def work() -> AccountResponse:
            account = self.repository.add_account(account_id, initial_balance)
            return self._account_to_response(account)

        try:
            response = run_in_transaction(self.session, work)
        except SQLAlchemyError as exc:
            if is_unique_violation(exc):
                self.logger.info("account.exists", extra={"account_id": account_id})
                raise AccountExistsError() from exc
            self.logger.error(
                "account.create_failed",
                extra={"account_id": account_id},
                exc_info=exc,
            )
            raise StoreUnavailableError(
                "internal server error: failed to create account"
            ) from exc

        self.logger.info(
            "account.created",
            extra={"account_id": account_id, "balance": format_amount(response.balance)},
        )
        return response

    def get_account(self, account_id: str) -> AccountResponse:
        def work() -> Optional[AccountResponse]:
            account = self.repository.get_account(account_id)
            if account is None:
                return None
            return self._account_to_response(account)

        try:
            response = run_in_transaction(self.session, work)
        except SQLAlchemyError as exc:
            self.logger.error(
                "account.read_failed",
                extra={"account_id": account_id},
                exc_info=exc,
            )
            raise StoreUnavailableError(
                "internal server error: failed to get account details"
            ) from exc

        if response is None:
            raise AccountNotFoundError()
        return response

    def transfer(
        self,
        source_account_id: str,
        destination_account_id: str,
        amount: Decimal,
    ) -> TransferResponse:
        receipt = self.transfers.transfer(source_account_id, destination_account_id, amount)
        self.logger.info(
            "transfer.committed",
            extra={
                "transaction_id": str(receipt.transaction_id),
                "source_account_id": receipt.source_account_id,
                "destination_account_id": receipt.destination_account_id,
                "amount": format_amount(receipt.amount),
                "attempts": receipt.attempts,
            },
        )
        return TransferResponse(
            transaction_id=receipt.transaction_id,
            source_account_id=receipt.source_account_id,
            destination_account_id=receipt.destination_account_id,
            amount=receipt.amount,
            created_at=receipt.created_at,
        )
