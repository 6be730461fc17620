from .ledger import LedgerService
from .repository import LedgerRepository
from .transfers import TransferEngine, TransferReceipt, TransferState
from .validation import (
    NewAccount,
    TransferCommand,
    validate_account_id,
    validate_create_account,
    validate_transfer,
)

__all__ = [
    "LedgerRepository",
    "LedgerService",
    "NewAccount",
    "TransferCommand",
    "TransferEngine",
    "TransferReceipt",
    "TransferState",
    "validate_account_id",
    "validate_create_account",
    "validate_transfer",
]
