"""
Budget and goal API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from finance_tracker.api.deps import get_current_user_id
from finance_tracker.errors import FinanceError
from finance_tracker.models.base import get_db
from finance_tracker.models.enums import BudgetPeriod, GoalStatus
from finance_tracker.services.budget_service import BudgetService
from finance_tracker.services.goal_service import GoalService
from finance_tracker.schemas.budget import (
    BudgetCreate,
    BudgetUpdate,
    BudgetResponse,
)
from finance_tracker.schemas.goal import GoalCreate, GoalUpdate, GoalResponse
from finance_tracker.schemas.transaction import DeleteResponse

router = APIRouter(tags=["Budgets"])


# --- Budget Endpoints ---

@router.post("/budgets", response_model=BudgetResponse, status_code=201)
def create_budget(
    request: BudgetCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = BudgetService(db)
    try:
        budget = service.create_budget(user_id, request)
        db.commit()
        return budget
    except FinanceError:
        db.rollback()
        raise


@router.get("/budgets", response_model=list[BudgetResponse])
def list_budgets(
    period: BudgetPeriod | None = None,
    category_id: int | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return BudgetService(db).list_budgets(user_id, period, category_id)


@router.patch("/budgets/{budget_id}", response_model=BudgetResponse)
def update_budget(
    budget_id: int,
    request: BudgetUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = BudgetService(db)
    try:
        budget = service.update_budget(user_id, budget_id, request)
        db.commit()
        return budget
    except FinanceError:
        db.rollback()
        raise


@router.delete("/budgets/{budget_id}", response_model=DeleteResponse)
def delete_budget(
    budget_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = BudgetService(db)
    try:
        success = service.delete_budget(user_id, budget_id)
        db.commit()
        return DeleteResponse(success=success)
    except FinanceError:
        db.rollback()
        raise


# --- Goal Endpoints ---

@router.post("/goals", response_model=GoalResponse, status_code=201)
def create_goal(
    request: GoalCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = GoalService(db)
    try:
        goal = service.create_goal(user_id, request)
        db.commit()
        return goal
    except FinanceError:
        db.rollback()
        raise


@router.get("/goals", response_model=list[GoalResponse])
def list_goals(
    status: GoalStatus | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return GoalService(db).list_goals(user_id, status)


@router.patch("/goals/{goal_id}", response_model=GoalResponse)
def update_goal(
    goal_id: int,
    request: GoalUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Update a goal. Reaching the target completes it."""
    service = GoalService(db)
    try:
        goal = service.update_goal(user_id, goal_id, request)
        db.commit()
        return goal
    except FinanceError:
        db.rollback()
        raise
