"""
Category service.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from finance_tracker.errors import NotFoundError
from finance_tracker.models.category import Category
from finance_tracker.models.enums import CategoryType
from finance_tracker.schemas.category import CategoryCreate


class CategoryService:

    def __init__(self, db: Session):
        self.db = db

    def create_category(self, user_id: int, request: CategoryCreate) -> Category:
        """Create a category. A parent must belong to the same user."""
        if request.parent_id is not None:
            parent = self.db.get(Category, request.parent_id)
            if not parent or parent.user_id != user_id:
                raise NotFoundError(
                    f"Parent category {request.parent_id} not found"
                )

        category = Category(
            user_id=user_id,
            name=request.name,
            category_type=request.category_type,
            color=request.color,
            parent_id=request.parent_id,
        )
        self.db.add(category)
        self.db.flush()
        return category

    def get_category(self, user_id: int, category_id: int) -> Category:
        category = self.db.get(Category, category_id)
        if not category or category.user_id != user_id:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    def list_categories(
        self, user_id: int, category_type: CategoryType | None = None
    ) -> list[Category]:
        stmt = select(Category).where(Category.user_id == user_id)
        if category_type is not None:
            stmt = stmt.where(Category.category_type == category_type)
        categories = self.db.execute(
            stmt.order_by(Category.name, Category.id)
        ).scalars().all()
        return list(categories)
