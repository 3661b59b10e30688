"""
Pydantic schemas for budgets and budget status.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from finance_tracker.models.enums import BudgetPeriod
from finance_tracker.schemas.common import Money, Percentage


class BudgetCreate(BaseModel):
    category_id: int
    amount: Money = Field(gt=0)
    period: BudgetPeriod
    start_date: date
    end_date: date | None = None

    @model_validator(mode="after")
    def end_not_before_start(self) -> "BudgetCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class BudgetUpdate(BaseModel):
    amount: Money | None = Field(default=None, gt=0)
    period: BudgetPeriod | None = None
    start_date: date | None = None
    end_date: date | None = None

    def provided(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}


class BudgetResponse(BaseModel):
    id: int
    user_id: int
    category_id: int
    amount: Money
    period: BudgetPeriod
    start_date: date
    end_date: date | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BudgetStatus(BaseModel):
    """Spent-versus-budgeted projection, computed fresh on every call."""
    budget: BudgetResponse
    spent_amount: Money
    remaining_amount: Money
    percentage_used: Percentage
