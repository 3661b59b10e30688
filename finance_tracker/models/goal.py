"""
Savings goal model.

current_amount is set by the user; it is not derived from
transactions.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from finance_tracker.models.base import Base
from finance_tracker.models.enums import GoalStatus, db_enum


class Goal(Base):
    __tablename__ = "goals"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )
    current_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    target_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[GoalStatus] = mapped_column(
        db_enum(GoalStatus, "goal_status_enum"),
        nullable=False,
        default=GoalStatus.ACTIVE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<Goal {self.id} {self.name!r} "
            f"{self.current_amount}/{self.target_amount} ({self.status.value})>"
        )
