from fastapi import APIRouter, Depends, status

from ..core.dependencies import get_ledger_service
from ..models import (
    AccountCreate,
    AccountResponse,
    ErrorResponse,
    TransferRequest,
    TransferResponse,
)
from ..services import (
    LedgerService,
    validate_account_id,
    validate_create_account,
    validate_transfer,
)

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


router = APIRouter(prefix="/accounts", tags=["accounts"])

@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
def create_account(
    payload: AccountCreate,
    service: LedgerService = Depends(get_ledger_service),
) -> AccountResponse:
    new_account = validate_create_account(payload)
    return service.create_account(new_account.account_id, new_account.initial_balance)

@router.get("/{account_id}", response_model=AccountResponse, responses=_ERRORS)
def get_account(
    account_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> AccountResponse:
    return service.get_account(validate_account_id(account_id))

transfer_router = APIRouter(prefix="/transactions", tags=["transactions"])

@transfer_router.post(
    "",
    response_model=TransferResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_ERRORS, 503: {"model": ErrorResponse}},
)
def create_transfer(
    payload: TransferRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> TransferResponse:
    command = validate_transfer(payload)
    return service.transfer(
        command.source_account_id,
        command.destination_account_id,
        command.amount,
    )

__all__ = ["router", "transfer_router"]
