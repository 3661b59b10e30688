"""
Budget model.

A spending limit for one expense category over a window.
There is no stored "spent" column; the ReportService sums
the window's transactions on every call.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finance_tracker.models.base import Base
from finance_tracker.models.enums import BudgetPeriod, db_enum


class Budget(Base):
    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(nullable=False, index=True)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )
    period: Mapped[BudgetPeriod] = mapped_column(
        db_enum(BudgetPeriod, "budget_period_enum"),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    category: Mapped["Category"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<Budget {self.id} category={self.category_id} "
            f"{self.amount} {self.period.value}>"
        )
