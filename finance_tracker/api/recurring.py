"""
Recurring rule API endpoints, including the sweep trigger.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from finance_tracker.api.deps import get_current_user_id
from finance_tracker.errors import FinanceError
from finance_tracker.models.base import get_db
from finance_tracker.services.recurrence_service import RecurrenceService
from finance_tracker.schemas.recurring import (
    RecurringRuleCreate,
    RecurringRuleResponse,
    SweepFailureResponse,
    SweepResponse,
)

router = APIRouter(prefix="/recurring", tags=["Recurring"])


@router.post("", response_model=RecurringRuleResponse, status_code=201)
def create_rule(
    request: RecurringRuleCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create a rule. Its first occurrence is start_date."""
    service = RecurrenceService(db)
    try:
        rule = service.create_rule(user_id, request)
        db.commit()
        return rule
    except FinanceError:
        db.rollback()
        raise


@router.get("", response_model=list[RecurringRuleResponse])
def list_rules(
    active_only: bool = False,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return RecurrenceService(db).list_rules(user_id, active_only)


@router.post("/process", response_model=SweepResponse)
def process_recurring_transactions(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Materialize every due occurrence of the caller's rules.

    Never fails as a whole because of one bad rule: per-rule
    failures are listed in "failed" and left out of "processed".
    """
    result = RecurrenceService(db).process_due_rules(user_id=user_id)
    return SweepResponse(
        processed=result.processed,
        occurrences=result.occurrences,
        failed=[
            SweepFailureResponse(
                rule_id=f.rule_id, error=f.error, message=f.message
            )
            for f in result.failures
        ],
    )


@router.get("/{rule_id}", response_model=RecurringRuleResponse)
def get_rule(
    rule_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return RecurrenceService(db).get_rule(user_id, rule_id)


@router.post("/{rule_id}/deactivate", response_model=RecurringRuleResponse)
def deactivate_rule(
    rule_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = RecurrenceService(db)
    try:
        rule = service.deactivate_rule(user_id, rule_id)
        db.commit()
        return rule
    except FinanceError:
        db.rollback()
        raise
