"""
Personal Finance Tracker FastAPI application.

This is the entry point for the application.
All routers are registered here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from finance_tracker.config import get_settings
from finance_tracker.errors import FinanceError
from finance_tracker.api.health import router as health_router
from finance_tracker.api.accounts import router as accounts_router
from finance_tracker.api.transactions import router as transactions_router
from finance_tracker.api.budgets import router as budgets_router
from finance_tracker.api.recurring import router as recurring_router
from finance_tracker.api.reports import router as reports_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    scheduler = None
    if settings.SCHEDULER_ENABLED:
        from finance_tracker.scheduler import SchedulerManager

        scheduler = SchedulerManager()
        scheduler.start()
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Personal finance tracking: ledger, budgets, recurring rules",
    lifespan=lifespan,
)

# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(transactions_router)
app.include_router(budgets_router)
app.include_router(recurring_router)
app.include_router(reports_router)


@app.exception_handler(FinanceError)
def finance_error_handler(_: Request, exc: FinanceError):
    """Map the domain error kind to a status code and a readable message."""
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )
