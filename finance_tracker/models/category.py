"""
Category model.

Categories classify transactions as income or expense and
may be nested one under another. A parent always belongs to
the same user as the child.
"""

from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finance_tracker.models.base import Base
from finance_tracker.models.enums import CategoryType, db_enum


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    category_type: Mapped[CategoryType] = mapped_column(
        db_enum(CategoryType, "category_type_enum"),
        nullable=False,
    )
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    parent: Mapped["Category | None"] = relationship(remote_side=[id])

    def __repr__(self) -> str:
        return f"<Category {self.id} {self.name!r} ({self.category_type.value})>"
