"""
Account and category API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from finance_tracker.api.deps import get_current_user_id
from finance_tracker.errors import FinanceError
from finance_tracker.models.base import get_db
from finance_tracker.models.enums import CategoryType
from finance_tracker.services.account_service import AccountService
from finance_tracker.services.category_service import CategoryService
from finance_tracker.schemas.account import (
    AccountCreate,
    AccountUpdate,
    AccountResponse,
)
from finance_tracker.schemas.category import CategoryCreate, CategoryResponse

router = APIRouter(tags=["Accounts"])


# --- Account Endpoints ---

@router.post("/accounts", response_model=AccountResponse, status_code=201)
def create_account(
    request: AccountCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Open a new account.

    A non-zero initial_balance is posted as an opening
    transaction in the same commit.
    """
    service = AccountService(db)
    try:
        account = service.create_account(user_id, request)
        db.commit()
        return account
    except FinanceError:
        db.rollback()
        raise


@router.get("/accounts", response_model=list[AccountResponse])
def list_accounts(
    include_inactive: bool = True,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return AccountService(db).list_accounts(user_id, include_inactive)


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get account details, including its cached balance."""
    return AccountService(db).get_account(user_id, account_id)


@router.patch("/accounts/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: int,
    request: AccountUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = AccountService(db)
    try:
        account = service.update_account(user_id, account_id, request)
        db.commit()
        return account
    except FinanceError:
        db.rollback()
        raise


@router.delete("/accounts/{account_id}", response_model=AccountResponse)
def delete_account(
    account_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Soft-delete an account. Its transactions are kept."""
    service = AccountService(db)
    try:
        account = service.delete_account(user_id, account_id)
        db.commit()
        return account
    except FinanceError:
        db.rollback()
        raise


# --- Category Endpoints ---

@router.post("/categories", response_model=CategoryResponse, status_code=201)
def create_category(
    request: CategoryCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    service = CategoryService(db)
    try:
        category = service.create_category(user_id, request)
        db.commit()
        return category
    except FinanceError:
        db.rollback()
        raise


@router.get("/categories", response_model=list[CategoryResponse])
def list_categories(
    category_type: CategoryType | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return CategoryService(db).list_categories(user_id, category_type)
