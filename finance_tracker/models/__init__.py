"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from finance_tracker.models.base import Base
from finance_tracker.models.enums import (
    AccountType,
    CategoryType,
    BudgetPeriod,
    Frequency,
    GoalStatus,
    AuditAction,
)
from finance_tracker.models.audit_log import AuditLog
from finance_tracker.models.account import Account
from finance_tracker.models.category import Category
from finance_tracker.models.recurring_rule import RecurringRule
from finance_tracker.models.transaction import Transaction
from finance_tracker.models.budget import Budget
from finance_tracker.models.goal import Goal

__all__ = [
    "Base",
    "AccountType",
    "CategoryType",
    "BudgetPeriod",
    "Frequency",
    "GoalStatus",
    "AuditAction",
    "AuditLog",
    "Account",
    "Category",
    "RecurringRule",
    "Transaction",
    "Budget",
    "Goal",
]
