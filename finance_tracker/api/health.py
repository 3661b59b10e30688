"""
Health check endpoint.

Besides database reachability it reports how far the recurring
sweep is behind: overdue_rules counts active rules whose due
date is already in the past. A value that stays above zero
after the daily run means the sweep is not running.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finance_tracker.clock import local_today
from finance_tracker.config import get_settings
from finance_tracker.models.base import get_db
from finance_tracker.models.recurring_rule import RecurringRule

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    settings = get_settings()
    database = "healthy"
    overdue_rules = None
    try:
        overdue_rules = db.execute(
            select(func.count(RecurringRule.id)).where(
                RecurringRule.is_active.is_(True),
                RecurringRule.next_due_date < local_today(),
            )
        ).scalar_one()
    except SQLAlchemyError as e:
        logger.warning("health check: database unreachable: %s", e)
        database = "unhealthy"

    return {
        "status": "healthy" if database == "healthy" else "degraded",
        "service": "finance-tracker",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": database,
        "overdue_rules": overdue_rules,
    }
