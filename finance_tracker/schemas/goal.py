"""
Pydantic schemas for savings goals.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from finance_tracker.models.enums import GoalStatus
from finance_tracker.schemas.common import Money


class GoalCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    target_amount: Money = Field(gt=0)
    target_date: date | None = None


class GoalUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    target_amount: Money | None = Field(default=None, gt=0)
    current_amount: Money | None = Field(default=None, ge=0)
    target_date: date | None = None
    status: GoalStatus | None = None

    def provided(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}


class GoalResponse(BaseModel):
    id: int
    user_id: int
    name: str
    description: str | None
    target_amount: Money
    current_amount: Money
    target_date: date | None
    status: GoalStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
