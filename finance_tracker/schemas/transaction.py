"""
Pydantic schemas for transaction operations.

TransactionUpdate is a partial update: only the fields the
client actually sent are applied (see model_fields_set). A
field sent as null clears it; a field left out is kept.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from finance_tracker.schemas.common import Money


class TransactionCreate(BaseModel):
    """
    A new transaction.

    amount is signed: positive flows into account_id, negative
    flows out. When destination_account_id is set the
    destination receives the opposite amount.
    """
    account_id: int
    destination_account_id: int | None = None
    category_id: int | None = None
    amount: Money
    description: str = Field(min_length=1, max_length=255)
    notes: str | None = None
    transaction_date: date | None = None

    @field_validator("amount")
    @classmethod
    def amount_must_be_non_zero(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v == 0:
            raise ValueError("amount must be non-zero")
        return v


class TransactionUpdate(BaseModel):
    account_id: int | None = None
    destination_account_id: int | None = None
    category_id: int | None = None
    amount: Money | None = None
    description: str | None = Field(default=None, min_length=1, max_length=255)
    notes: str | None = None
    transaction_date: date | None = None

    @field_validator("amount")
    @classmethod
    def amount_must_be_non_zero(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v == 0:
            raise ValueError("amount must be non-zero")
        return v

    def provided(self) -> dict:
        """Fields explicitly present in the request, with their values."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class TransactionResponse(BaseModel):
    id: int
    user_id: int
    account_id: int
    destination_account_id: int | None
    category_id: int | None
    recurring_rule_id: int | None
    amount: Money
    description: str
    notes: str | None
    transaction_date: date
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DeleteResponse(BaseModel):
    success: bool
