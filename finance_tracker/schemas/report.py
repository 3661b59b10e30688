"""
Pydantic schemas for aggregate reports.
"""

from datetime import date

from pydantic import BaseModel

from finance_tracker.schemas.budget import BudgetStatus
from finance_tracker.schemas.common import Money
from finance_tracker.schemas.goal import GoalResponse


class FinancialSummary(BaseModel):
    start_date: date | None
    end_date: date | None
    total_income: Money
    total_expenses: Money
    net_income: Money
    account_balances: dict[str, Money]
    budget_status: list[BudgetStatus]
    goal_progress: list[GoalResponse]
