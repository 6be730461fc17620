from .db import Account as AccountModel
from .db import TransactionRecord as TransactionRecordModel
from .schemas import (
    AccountCreate,
    AccountResponse,
    ErrorResponse,
    TransferRequest,
    TransferResponse,
)

__all__ = [
    "AccountCreate",
    "AccountResponse",
    "ErrorResponse",
    "TransferRequest",
    "TransferResponse",
    "AccountModel",
    "TransactionRecordModel",
]
