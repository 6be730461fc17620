from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer

from ..core.amount import format_amount

# Request fields stay loosely typed strings: trimming, presence and decimal
# parsing are the validation layer's job so every failure gets a ledger
# error kind instead of a generic schema error.


class AccountCreate(BaseModel):
    account_id: Optional[str] = Field(default=None, description="Caller-supplied account identifier")
    initial_balance: Optional[str] = Field(
        default=None, description='Opening balance as a decimal string, e.g. "100.00"'
    )


class AccountResponse(BaseModel):
    account_id: str
    balance: Decimal = Field(..., ge=0, description="Balance as a canonical decimal string")

    @field_serializer("balance")
    def _serialize_balance(self, value: Decimal) -> str:
        return format_amount(value)


class TransferRequest(BaseModel):
    source_account_id: Optional[str] = None
    destination_account_id: Optional[str] = None
    amount: Optional[str] = Field(default=None, description="Positive decimal string")


class TransferResponse(BaseModel):
    transaction_id: UUID
    source_account_id: str
    destination_account_id: str
    amount: Decimal
    created_at: datetime

    @field_serializer("amount")
    def _serialize_amount(self, value: Decimal) -> str:
        return format_amount(value)


class ErrorResponse(BaseModel):
    detail: str
    code: str
