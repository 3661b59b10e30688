"""
Pydantic schemas for category operations.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from finance_tracker.models.enums import CategoryType


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    category_type: CategoryType
    color: str | None = Field(default=None, max_length=20)
    parent_id: int | None = None


class CategoryResponse(BaseModel):
    id: int
    user_id: int
    name: str
    category_type: CategoryType
    color: str | None
    parent_id: int | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
