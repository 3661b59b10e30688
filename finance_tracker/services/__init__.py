"""Business logic services."""

from finance_tracker.services.transaction_service import TransactionService
from finance_tracker.services.account_service import AccountService
from finance_tracker.services.category_service import CategoryService
from finance_tracker.services.budget_service import BudgetService
from finance_tracker.services.goal_service import GoalService
from finance_tracker.services.recurrence_service import RecurrenceService
from finance_tracker.services.report_service import ReportService

__all__ = [
    "TransactionService",
    "AccountService",
    "CategoryService",
    "BudgetService",
    "GoalService",
    "RecurrenceService",
    "ReportService",
]
