"""
Pydantic schemas for recurring rules and the sweep.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from finance_tracker.models.enums import Frequency
from finance_tracker.schemas.common import Money


class RecurringRuleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    account_id: int
    destination_account_id: int | None = None
    category_id: int | None = None
    amount: Money
    description: str = Field(min_length=1, max_length=255)
    frequency: Frequency
    start_date: date
    end_date: date | None = None

    @field_validator("amount")
    @classmethod
    def amount_must_be_non_zero(cls, v: Decimal) -> Decimal:
        if v == 0:
            raise ValueError("amount must be non-zero")
        return v

    @model_validator(mode="after")
    def end_not_before_start(self) -> "RecurringRuleCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class RecurringRuleResponse(BaseModel):
    id: int
    user_id: int
    name: str
    account_id: int
    destination_account_id: int | None
    category_id: int | None
    amount: Money
    description: str
    frequency: str
    start_date: date
    end_date: date | None
    next_due_date: date
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SweepFailureResponse(BaseModel):
    rule_id: int
    error: str
    message: str


class SweepResponse(BaseModel):
    processed: int
    occurrences: int
    failed: list[SweepFailureResponse]
