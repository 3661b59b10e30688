"""
Budget service: create and maintain budget definitions.

Spending against a budget is computed by the ReportService;
nothing here stores it.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from finance_tracker.errors import InvalidArgumentError, NotFoundError
from finance_tracker.models.budget import Budget
from finance_tracker.models.enums import BudgetPeriod, CategoryType
from finance_tracker.money import to_money
from finance_tracker.schemas.budget import BudgetCreate, BudgetUpdate
from finance_tracker.services.category_service import CategoryService


class BudgetService:

    def __init__(self, db: Session):
        self.db = db
        self.category_service = CategoryService(db)

    def create_budget(self, user_id: int, request: BudgetCreate) -> Budget:
        """Create a budget over an expense category."""
        category = self.category_service.get_category(
            user_id, request.category_id
        )
        if category.category_type != CategoryType.EXPENSE:
            raise InvalidArgumentError(
                f"Category {category.id} is not an expense category"
            )

        budget = Budget(
            user_id=user_id,
            category_id=category.id,
            amount=to_money(request.amount),
            period=request.period,
            start_date=request.start_date,
            end_date=request.end_date,
        )
        self.db.add(budget)
        self.db.flush()
        return budget

    def get_budget(self, user_id: int, budget_id: int) -> Budget:
        budget = self.db.get(Budget, budget_id)
        if not budget or budget.user_id != user_id:
            raise NotFoundError(f"Budget {budget_id} not found")
        return budget

    def list_budgets(
        self,
        user_id: int,
        period: BudgetPeriod | None = None,
        category_id: int | None = None,
    ) -> list[Budget]:
        stmt = select(Budget).where(Budget.user_id == user_id)
        if period is not None:
            stmt = stmt.where(Budget.period == period)
        if category_id is not None:
            stmt = stmt.where(Budget.category_id == category_id)
        budgets = self.db.execute(stmt.order_by(Budget.id)).scalars().all()
        return list(budgets)

    def update_budget(
        self, user_id: int, budget_id: int, request: BudgetUpdate
    ) -> Budget:
        budget = self.get_budget(user_id, budget_id)
        changes = request.provided()
        for name in ("amount", "period", "start_date"):
            if name in changes and changes[name] is None:
                raise InvalidArgumentError(
                    f"{name} cannot be cleared on budget {budget_id}"
                )

        start_date = changes.get("start_date", budget.start_date)
        end_date = changes.get("end_date", budget.end_date)
        if end_date is not None and end_date < start_date:
            raise InvalidArgumentError(
                f"Budget {budget_id} end_date {end_date} is before "
                f"start_date {start_date}"
            )

        for name, value in changes.items():
            if name == "amount":
                value = to_money(value)
            setattr(budget, name, value)
        self.db.flush()
        return budget

    def delete_budget(self, user_id: int, budget_id: int) -> bool:
        budget = self.get_budget(user_id, budget_id)
        self.db.delete(budget)
        self.db.flush()
        return True
