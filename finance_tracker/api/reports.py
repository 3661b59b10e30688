"""
Report API endpoints. Read-only.
"""

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from finance_tracker.api.deps import get_current_user_id
from finance_tracker.models.base import get_db
from finance_tracker.models.enums import BudgetPeriod
from finance_tracker.services.report_service import ReportService
from finance_tracker.schemas.budget import BudgetStatus
from finance_tracker.schemas.report import FinancialSummary

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/budget-status", response_model=list[BudgetStatus])
def get_budget_status(
    period: BudgetPeriod | None = None,
    category_id: int | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Spent versus budgeted for each matching budget."""
    return ReportService(db).get_budget_status(user_id, period, category_id)


@router.get("/summary", response_model=FinancialSummary)
def get_financial_summary(
    start_date: date | None = None,
    end_date: date | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Income, expenses, balances, budgets and goals in one call."""
    return ReportService(db).get_financial_summary(
        user_id, start_date, end_date
    )
