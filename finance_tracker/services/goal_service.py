"""
Goal service: savings goals with a user-maintained balance.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from finance_tracker.errors import InvalidArgumentError, NotFoundError
from finance_tracker.models.enums import GoalStatus
from finance_tracker.models.goal import Goal
from finance_tracker.money import to_money
from finance_tracker.schemas.goal import GoalCreate, GoalUpdate


class GoalService:

    def __init__(self, db: Session):
        self.db = db

    def create_goal(self, user_id: int, request: GoalCreate) -> Goal:
        goal = Goal(
            user_id=user_id,
            name=request.name,
            description=request.description,
            target_amount=to_money(request.target_amount),
            target_date=request.target_date,
        )
        self.db.add(goal)
        self.db.flush()
        return goal

    def get_goal(self, user_id: int, goal_id: int) -> Goal:
        goal = self.db.get(Goal, goal_id)
        if not goal or goal.user_id != user_id:
            raise NotFoundError(f"Goal {goal_id} not found")
        return goal

    def list_goals(
        self, user_id: int, status: GoalStatus | None = None
    ) -> list[Goal]:
        stmt = select(Goal).where(Goal.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Goal.status == status)
        goals = self.db.execute(stmt.order_by(Goal.id)).scalars().all()
        return list(goals)

    def update_goal(self, user_id: int, goal_id: int, request: GoalUpdate) -> Goal:
        """
        Apply a partial update.

        Reaching the target marks an active goal completed,
        unless the same request sets the status itself.
        """
        goal = self.get_goal(user_id, goal_id)
        changes = request.provided()
        for name in ("name", "target_amount", "current_amount", "status"):
            if name in changes and changes[name] is None:
                raise InvalidArgumentError(
                    f"{name} cannot be cleared on goal {goal_id}"
                )

        for name, value in changes.items():
            if name in ("target_amount", "current_amount"):
                value = to_money(value)
            setattr(goal, name, value)

        if (
            "status" not in changes
            and goal.status == GoalStatus.ACTIVE
            and goal.current_amount >= goal.target_amount
        ):
            goal.status = GoalStatus.COMPLETED

        self.db.flush()
        return goal
