"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored. Recurring frequency is the
exception: it is kept as a plain string column and checked
by the recurrence engine, which must be able to reject a bad
rule without aborting a sweep.
"""

import enum

from sqlalchemy import Enum as SAEnum


class AccountType(str, enum.Enum):
    """Kinds of money containers a user can track."""
    CASH = "cash"
    BANK = "bank"
    CREDIT_CARD = "credit_card"
    INVESTMENT = "investment"
    LOAN = "loan"


class CategoryType(str, enum.Enum):
    """Direction a category classifies."""
    INCOME = "income"
    EXPENSE = "expense"


class BudgetPeriod(str, enum.Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Frequency(str, enum.Enum):
    """How often a recurring rule fires."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class GoalStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class AuditAction(str, enum.Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


def db_enum(enum_cls: type[enum.Enum], name: str) -> SAEnum:
    """Database enum that stores member values ("cash"), not names ("CASH")."""
    return SAEnum(
        enum_cls,
        name=name,
        create_constraint=True,
        values_callable=lambda members: [m.value for m in members],
    )
