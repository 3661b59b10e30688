"""
Pydantic schemas for account operations.

There is no way to set a balance directly. An opening balance
is posted as a transaction when the account is created.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from finance_tracker.models.enums import AccountType
from finance_tracker.schemas.common import Money


class AccountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    account_type: AccountType
    initial_balance: Money = Decimal("0.00")
    currency: str = Field(default="USD", min_length=3, max_length=3)
    description: str | None = None


class AccountUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    account_type: AccountType | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    description: str | None = None
    is_active: bool | None = None

    def provided(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}


class AccountResponse(BaseModel):
    id: int
    user_id: int
    name: str
    account_type: AccountType
    balance: Money
    currency: str
    description: str | None
    is_active: bool
    deleted_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
