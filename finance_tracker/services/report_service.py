"""
Report service: read-only projections over the ledger.

Nothing here writes. Budget spending is summed fresh on every
call from the transactions themselves.

Under the signed-amount convention expenses are negative, so
spent and total_expenses are reported as positive outflows:
spent = -(sum of amounts). A refund (positive amount) in an
expense category lowers spent.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from finance_tracker.models.account import Account
from finance_tracker.models.budget import Budget
from finance_tracker.models.category import Category
from finance_tracker.models.enums import BudgetPeriod, CategoryType
from finance_tracker.models.transaction import Transaction
from finance_tracker.money import ZERO, to_money
from finance_tracker.schemas.budget import BudgetResponse, BudgetStatus
from finance_tracker.schemas.goal import GoalResponse
from finance_tracker.schemas.report import FinancialSummary
from finance_tracker.services.budget_service import BudgetService
from finance_tracker.services.goal_service import GoalService

HUNDRED = Decimal("100")


def percentage_used(spent: Decimal, amount: Decimal) -> Decimal:
    """
    Share of the budget used, capped to the range 0-100.

    A zero budget reports 0 rather than dividing by zero.
    """
    if amount <= 0:
        return ZERO
    pct = spent * HUNDRED / amount
    return to_money(min(HUNDRED, max(ZERO, pct)))


class ReportService:

    def __init__(self, db: Session):
        self.db = db
        self.budget_service = BudgetService(db)
        self.goal_service = GoalService(db)

    def _spent(self, budget: Budget) -> Decimal:
        """Expense outflow in the budget's category and window."""
        stmt = (
            select(func.coalesce(func.sum(Transaction.amount), 0))
            .join(Category, Transaction.category_id == Category.id)
            .where(
                Transaction.user_id == budget.user_id,
                Transaction.category_id == budget.category_id,
                Category.category_type == CategoryType.EXPENSE,
                Transaction.transaction_date >= budget.start_date,
            )
        )
        if budget.end_date is not None:
            stmt = stmt.where(Transaction.transaction_date <= budget.end_date)
        total = self.db.execute(stmt).scalar()
        return ZERO - to_money(total)

    def budget_status(self, budget: Budget) -> BudgetStatus:
        spent = self._spent(budget)
        amount = to_money(budget.amount)
        return BudgetStatus(
            budget=BudgetResponse.model_validate(budget),
            spent_amount=spent,
            remaining_amount=amount - spent,
            percentage_used=percentage_used(spent, amount),
        )

    def get_budget_status(
        self,
        user_id: int,
        period: BudgetPeriod | None = None,
        category_id: int | None = None,
    ) -> list[BudgetStatus]:
        """Spent, remaining and percentage used for each matching budget."""
        budgets = self.budget_service.list_budgets(user_id, period, category_id)
        return [self.budget_status(b) for b in budgets]

    def _totals_by_category_type(
        self,
        user_id: int,
        start_date: date | None,
        end_date: date | None,
    ) -> dict[CategoryType, Decimal]:
        stmt = (
            select(Category.category_type, func.sum(Transaction.amount))
            .join(Category, Transaction.category_id == Category.id)
            .where(Transaction.user_id == user_id)
            .group_by(Category.category_type)
        )
        if start_date is not None:
            stmt = stmt.where(Transaction.transaction_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Transaction.transaction_date <= end_date)

        return {
            category_type: to_money(total)
            for category_type, total in self.db.execute(stmt).all()
        }

    def get_financial_summary(
        self,
        user_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> FinancialSummary:
        """
        Income, expenses and net over an optional date range, plus
        current balances, budget status and goals.

        account_balances is keyed by account name; if two accounts
        share a name the later one (by id) wins.
        """
        totals = self._totals_by_category_type(user_id, start_date, end_date)
        income = totals.get(CategoryType.INCOME, ZERO)
        expenses = ZERO - totals.get(CategoryType.EXPENSE, ZERO)

        accounts = self.db.execute(
            select(Account)
            .where(Account.user_id == user_id, Account.deleted_at.is_(None))
            .order_by(Account.id)
        ).scalars().all()
        balances = {a.name: to_money(a.balance) for a in accounts}

        return FinancialSummary(
            start_date=start_date,
            end_date=end_date,
            total_income=income,
            total_expenses=expenses,
            net_income=income - expenses,
            account_balances=balances,
            budget_status=self.get_budget_status(user_id),
            goal_progress=[
                GoalResponse.model_validate(g)
                for g in self.goal_service.list_goals(user_id)
            ],
        )
