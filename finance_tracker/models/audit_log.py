"""
Audit log model.

Records every write to a transaction, in the same unit of
work as the write itself, so the history of a balance can be
reconstructed.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from finance_tracker.models.base import Base
from finance_tracker.models.enums import AuditAction, db_enum


class AuditLog(Base):
    """
    Immutable record of a change.

    Audit rows are append-only: never updated or deleted.
    old_values and new_values hold JSON snapshots.
    """

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(nullable=False, index=True)
    table_name: Mapped[str] = mapped_column(String(50), nullable=False)
    record_id: Mapped[int] = mapped_column(nullable=False)
    action: Mapped[AuditAction] = mapped_column(
        db_enum(AuditAction, "audit_action_enum"),
        nullable=False,
    )
    old_values: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_values: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
