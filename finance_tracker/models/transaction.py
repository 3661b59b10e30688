"""
Transaction model.

Signed-amount convention: a positive amount is money flowing
into account_id, a negative amount is money flowing out. For
a transfer, destination_account_id receives the opposite of
amount, so a transfer of -100.00 from A to B moves 100.00
into B.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Date, DateTime, Numeric, Text, ForeignKey,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finance_tracker.models.base import Base


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(nullable=False, index=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    destination_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True, index=True
    )
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id"), nullable=True, index=True
    )
    recurring_rule_id: Mapped[int | None] = mapped_column(
        ForeignKey("recurring_rules.id"), nullable=True, index=True
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )
    description: Mapped[str] = mapped_column(
        String(255), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    transaction_date: Mapped[date] = mapped_column(
        Date, nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    account: Mapped["Account"] = relationship(foreign_keys=[account_id])
    destination_account: Mapped["Account | None"] = relationship(
        foreign_keys=[destination_account_id]
    )
    category: Mapped["Category | None"] = relationship()

    @property
    def is_transfer(self) -> bool:
        return self.destination_account_id is not None

    def balance_effect(self) -> dict[int, Decimal]:
        """Per-account delta this transaction contributes to balances."""
        effect = {self.account_id: self.amount}
        if self.destination_account_id is not None:
            effect[self.destination_account_id] = (
                effect.get(self.destination_account_id, Decimal("0")) - self.amount
            )
        return effect

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.id} {self.amount} "
            f"account={self.account_id} on {self.transaction_date}>"
        )
